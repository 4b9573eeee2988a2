"""
Diagnostics tests

Tests the fatal error taxonomy and the shape of reported messages.
"""

import pytest

from stylemacro import (
    transform,
    MacroError,
    ImportStyleViolationError,
    UnresolvedMacroError,
    MalformedMacroError,
)
from stylemacro.config import AppSettings


class TestImportStyle:
    """Test the module-syntax requirement"""

    COMMONJS = (
        "\n"
        "const styled = require('./styled/macro')\n"
        "const SomeComponent = styled('div')`\n"
        "  display: flex;\n"
        "`\n"
    )

    def test_commonjs_styled_raises(self):
        """styled bound with require() fails with the module syntax message"""
        with pytest.raises(ImportStyleViolationError) as excinfo:
            transform(self.COMMONJS, settings=AppSettings())
        assert "must be imported with module syntax (es modules)" in str(excinfo.value)

    def test_error_location(self):
        """The error points at the offending use"""
        with pytest.raises(ImportStyleViolationError) as excinfo:
            transform(self.COMMONJS, filename="component.js", settings=AppSettings())
        error = excinfo.value
        assert (error.line, error.column) == (3, 23)
        assert error.filename == "component.js"
        message = str(error)
        assert "component.js: Line 3, column 23" in message
        assert "Context: const SomeComponent = styled('div')`" in message

    def test_is_syntax_error(self):
        """Macro errors are SyntaxErrors"""
        with pytest.raises(SyntaxError):
            transform(self.COMMONJS, settings=AppSettings())

    def test_module_syntax_does_not_raise(self):
        """The same module with an import declaration compiles"""
        source = self.COMMONJS.replace(
            "const styled = require('./styled/macro')", "import styled from './styled/macro'"
        )
        result = transform(source, settings=AppSettings())
        assert "_styled('div', [`\n  display: flex;\n`]" in result.code

    def test_destructured_require_raises(self):
        """Any invocation macro bound with require() fails"""
        source = "const { css } = require('./macro')\nconst a = css`x`"
        with pytest.raises(ImportStyleViolationError, match="'css' macro"):
            transform(source, settings=AppSettings())

    def test_unused_require_is_fine(self):
        """The check fires on use, not on the require"""
        source = "const { css } = require('./macro')\nconst a = 1"
        assert transform(source, settings=AppSettings()).code == source

    def test_bare_values_may_be_required(self):
        """hydrate and flush are left alone when required"""
        source = "const { flush } = require('./macro')\nafterEach(flush)"
        result = transform(source, settings=AppSettings())
        assert result.code == source
        assert result.outputs[0].is_passthrough


class TestUnresolved:
    """Test bindings that cannot be resolved statically"""

    def test_reassigned_binding(self):
        """A reassigned macro binding is reported at its use"""
        source = "import { css } from './macro'\nconst a = css`x`\ncss = somethingElse"
        with pytest.raises(UnresolvedMacroError, match="cannot statically resolve macro 'css'") as excinfo:
            transform(source, settings=AppSettings())
        assert excinfo.value.line == 2

    def test_reassigned_nested_use(self):
        """A nested use of a reassigned binding is reported too"""
        source = "import { css, injectGlobal } from './macro'\ninjectGlobal`${css`x`}`\ncss++"
        with pytest.raises(UnresolvedMacroError):
            transform(source, settings=AppSettings())

    def test_redeclared_binding(self):
        """A function declaration with the same name shadows the macro"""
        source = "import { keyframes } from './macro'\nfunction keyframes() {}\nkeyframes`x`"
        with pytest.raises(UnresolvedMacroError):
            transform(source, settings=AppSettings())


class TestMalformed:
    """Test source the pass cannot analyze"""

    def test_styled_tagged_template(self):
        """styled cannot be tagged directly"""
        with pytest.raises(MalformedMacroError):
            transform("import styled from './macro'\nstyled`x`", settings=AppSettings())

    def test_misuse_message_shows_examples(self):
        """The message names the macro and shows accepted forms"""
        with pytest.raises(MalformedMacroError) as excinfo:
            transform("import styled from './macro'\nstyled`x`", settings=AppSettings())
        message = str(excinfo.value)
        assert "macro 'styled' (styled: Styled component factory" in message
        assert "expected e.g. styled.div`display: flex;`" in message

    def test_unterminated_call(self):
        """A call without closing paren"""
        with pytest.raises(MalformedMacroError):
            transform("import { css } from './macro'\ncss(`x`", settings=AppSettings())

    def test_unterminated_template(self):
        """A template without closing backtick"""
        with pytest.raises(MalformedMacroError):
            transform("import { css } from './macro'\ncss`x", settings=AppSettings())

    def test_common_base(self):
        """All fatal diagnostics share one base class"""
        for error_class in (ImportStyleViolationError, UnresolvedMacroError, MalformedMacroError):
            assert issubclass(error_class, MacroError)


class TestPassThrough:
    """Unknown exports are not errors"""

    def test_unknown_export_identity(self):
        """An unknown name is left exactly as written"""
        source = "\nimport { thisDoesNotExist } from './styled/macro'\nconst someOtherVar = thisDoesNotExist\n"
        result = transform(source, settings=AppSettings())
        assert result.code == source
        assert result.changed is False
        assert [output.code for output in result.outputs] == ["thisDoesNotExist"]
