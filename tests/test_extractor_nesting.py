"""
Style extractor tests - fragment sequences and nested macros

Tests lossless literal extraction, slot numbering, splicing of nested css
uses at any depth, and interpolations that stay slots.
"""

import pytest

from stylemacro.config import AppSettings, DEFAULT_MANIFEST
from stylemacro.lib.compiler import Compiler
from stylemacro.lib.extractor import string_toTemplateRaw
from stylemacro.lib.parser import Parser
from stylemacro.lib.registry import MacroRegistry
from stylemacro.models import FragmentSequence, LiteralFragment, SlotFragment


HEADER = "import styled, { css, keyframes, injectGlobal } from './macro'\n"


def fragments_for(body: str) -> FragmentSequence:
    """Fragment sequence of the first invocation in body"""
    module = Parser(HEADER + body).parse()
    compiler = Compiler(module, registry=MacroRegistry.manifest_load(DEFAULT_MANIFEST), settings=AppSettings())
    invocation = compiler.matcher.invocations_match()[0]
    return compiler.extractor.fragments_extract(invocation)


class TestLosslessLiterals:
    """Literal text must survive extraction byte for byte"""

    def test_placeholders_reproduce_template(self):
        """Joining literals with slot placeholders gives back the template text"""
        settings = AppSettings()
        raw = "\n  width: ${w}px;\n  height: ${h}px;\n  content: '\\`';\n"
        fragments = fragments_for("css`" + raw + "`")
        expected = raw.replace("${w}", settings.placeHolder_make(0)).replace("${h}", settings.placeHolder_make(1))
        assert fragments.literals_join(settings.placeHolder_make) == expected

    def test_escapes_untouched(self):
        """Escape sequences are kept in raw form"""
        fragments = fragments_for("css`content: \"\\f101\"; a\\`b`")
        assert fragments.literals == ["content: \"\\f101\"; a\\`b"]

    def test_single_literal(self):
        """A template without interpolations is one literal"""
        fragments = fragments_for("styled.div`display: flex;`")
        assert list(fragments) == [LiteralFragment("display: flex;")]


class TestSlots:
    """Test interpolation slots"""

    def test_dense_indices(self):
        """Slots are numbered 0..n-1 in source order"""
        fragments = fragments_for("css`a${x}b${y}c${z}d`")
        assert [slot.index for slot in fragments.slots] == [0, 1, 2]
        assert [slot.expression for slot in fragments.slots] == ["x", "y", "z"]
        assert fragments.literals == ["a", "b", "c", "d"]

    def test_expression_whitespace_trimmed(self):
        """Slot expressions are the trimmed source text"""
        fragments = fragments_for("css`width: ${ props.width * 2 }px;`")
        assert fragments.slots[0].expression == "props.width * 2"

    def test_adjacent_slots_separated(self):
        """An empty literal keeps two slots from touching"""
        fragments = fragments_for("css`${a}${b}`")
        items = list(fragments)
        assert isinstance(items[0], SlotFragment)
        assert items[1] == LiteralFragment("")
        assert isinstance(items[2], SlotFragment)
        assert len(items) == 3

    def test_slot_location(self):
        """Slots remember where their expression started"""
        fragments = fragments_for("css`a${x}`")
        location = fragments.slots[0].location
        assert (location.line, location.column) == (2, 8)


class TestCallContent:
    """Test fragments of call forms"""

    def test_no_arguments(self):
        """css() has an empty sequence"""
        fragments = fragments_for("const cls1 = css()")
        assert len(fragments) == 0

    def test_string_argument(self):
        """A quoted string becomes template-raw literal text"""
        fragments = fragments_for("css('color: `red`;')")
        assert fragments.literals == ["color: \\`red\\`;"]

    def test_template_argument(self):
        """A template argument is extracted like a tagged template"""
        fragments = fragments_for("css(`a${x}b`)")
        assert fragments.literals == ["a", "b"]
        assert fragments.slots[0].expression == "x"

    def test_object_argument(self):
        """An object literal is one opaque slot"""
        fragments = fragments_for("css({ display: 'flex' })")
        assert fragments.literals == []
        assert [slot.expression for slot in fragments.slots] == ["{ display: 'flex' }"]

    def test_several_arguments(self):
        """Each argument is its own slot"""
        fragments = fragments_for("css(base, { color: 'red' })")
        assert [slot.expression for slot in fragments.slots] == ["base", "{ color: 'red' }"]
        assert fragments.literals == [""]


class TestNestedSplice:
    """Test splicing of nested css uses"""

    def test_flattened_example(self):
        """Nested css text lands between its neighbours with no call left"""
        fragments = fragments_for("css`font-size:20px; ${css`width:96px;`}; line-height:40px;`")
        assert fragments.literals == ["font-size:20px; width:96px;; line-height:40px;"]
        assert fragments.slots == []

    def test_slots_renumbered(self):
        """Slots of the nested sequence continue the parent's numbering"""
        fragments = fragments_for("css`a${x}b${css`c${y}d`}e${z}f`")
        assert fragments.literals == ["a", "bc", "de", "f"]
        assert [(slot.expression, slot.index) for slot in fragments.slots] == [("x", 0), ("y", 1), ("z", 2)]

    def test_splice_into_inject_global(self):
        """css nested in injectGlobal is spliced too"""
        fragments = fragments_for("injectGlobal`body { ${css`margin: 0;`} }`")
        assert fragments.literals == ["body { margin: 0; }"]

    def test_splice_in_call_template(self):
        """css nested in a template argument is spliced"""
        fragments = fragments_for("css(`x ${css`y`} z`)")
        assert fragments.literals == ["x y z"]

    def test_nested_object_call(self):
        """A nested css({...}) contributes its slot"""
        fragments = fragments_for("css`a ${css({ color: 'red' })} b`")
        assert fragments.literals == ["a ", " b"]
        assert fragments.slots[0].expression == "{ color: 'red' }"

    @pytest.mark.parametrize("depth", [1, 2, 5, 25])
    def test_arbitrary_depth(self, depth):
        """Splicing terminates and stays exact at any nesting depth"""
        body = "core;"
        for _ in range(depth):
            body = "[${css`" + body + "`}]"
        fragments = fragments_for("css`" + body + "`")
        assert fragments.literals == ["[" * depth + "core;" + "]" * depth]


class TestNestedInPlace:
    """Interpolations that are not exactly one css use stay slots"""

    def test_keyframes_compiled_in_slot(self):
        """keyframes is never spliced; it is expanded inside the slot"""
        fragments = fragments_for("css`animation: ${keyframes`from{}`} 1s;`")
        assert fragments.literals == ["animation: ", " 1s;"]
        assert fragments.slots[0].expression == "_keyframes([`from{}`])"

    def test_css_inside_larger_expression(self):
        """css inside a bigger expression is expanded in place"""
        fragments = fragments_for("css`${cond && css`a`}`")
        assert fragments.slots[0].expression == "cond && _css([`a`])"

    def test_styled_never_spliced(self):
        """styled uses are values, not style text"""
        fragments = fragments_for("css`${styled.div`a`}`")
        assert fragments.slots[0].expression == "_styled(\"div\", [`a`])"


class TestStringConversion:
    """Test quoted string to template-raw conversion"""

    def test_backtick_and_interpolation_escaped(self):
        """Bare backticks and ${ are escaped"""
        assert string_toTemplateRaw("'a`b ${c}'") == "a\\`b \\${c}"

    def test_escape_pairs_kept(self):
        """Existing escapes are kept as written"""
        assert string_toTemplateRaw('"x\\"y"') == 'x\\"y'

    def test_lone_dollar(self):
        """A dollar not followed by { is plain text"""
        assert string_toTemplateRaw("'$5'") == "$5"
