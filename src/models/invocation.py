"""
Invocation-side data models

Bindings found by the resolver, invocations classified by the matcher,
fragment sequences built by the extractor and compiled outputs emitted by
the generator. All of them live only for one module's pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union, TYPE_CHECKING

from .parser import ExpressionSpan, ImportDeclaration, ImportMechanism, SourceLocation, TemplateLiteral

if TYPE_CHECKING:
    from .macros import MacroSpec


# Exported-name marker for imports of names the registry does not know
UNKNOWN_EXPORT = "<unknown>"


@dataclass(frozen=True)
class Binding:
    """
    A local identifier bound to an export of the macro module

    Attributes:
        local_name: Identifier used in the module
        exported_name: Registry name, or UNKNOWN_EXPORT
        imported_name: Name as written in the import ("default" for defaults)
        macro_module_path: Import source as written
        import_mechanism: MODULE or DYNAMIC
        declaration: The import/require declaration that created it

    Example:
        For "import { css as c } from './styled/macro'":
        Binding(local_name="c", exported_name="css", imported_name="css", ...)
    """
    local_name: str
    exported_name: str
    imported_name: str
    macro_module_path: str
    import_mechanism: ImportMechanism
    declaration: ImportDeclaration = field(compare=False, repr=False)

    @property
    def is_unknown(self) -> bool:
        return self.exported_name == UNKNOWN_EXPORT


class InvocationForm(Enum):
    """
    Closed set of use-site shapes, selected once per site by the matcher

    The first four carry style content; BARE_VALUE and PASS_THROUGH are
    plain identifier references.
    """
    TAGGED_TEMPLATE = "tagged-template"          # css`...`
    CALL_STRING_LIKE = "call-string-like"        # css(), css('...'), css(`...`)
    CALL_OBJECT = "call-object"                  # css({...}), css(a, b)
    MEMBER_OR_FACTORY = "member-or-factory"      # styled.div`...`, styled('div')({...})
    BARE_VALUE = "bare-value"                    # const f = flush
    PASS_THROUGH = "pass-through"                # unknown export, left untouched


class ReferencePosition(Enum):
    """
    Where a bare identifier reference sits

    Shorthand properties and export specifiers use the identifier as a
    key or exported name too, and that name must survive the rename.
    """
    EXPRESSION = "expression"                    # const f = flush
    SHORTHAND_PROPERTY = "shorthand-property"    # { flush }
    EXPORT_SPECIFIER = "export-specifier"        # export { flush }


CONTENT_FORMS = (
    InvocationForm.TAGGED_TEMPLATE,
    InvocationForm.CALL_STRING_LIKE,
    InvocationForm.CALL_OBJECT,
    InvocationForm.MEMBER_OR_FACTORY,
)


@dataclass
class Invocation:
    """
    One matched use of a macro binding

    Attributes:
        binding: Binding the use refers to
        form: Shape of the use site
        location: Line/column of the referencing identifier
        start: Source offset where the replaced text begins
        end: Source offset one past the replaced text
        spec: Registry entry, None for pass-through uses
        content_form: For MEMBER_OR_FACTORY, the shape of the content part
                      (TAGGED_TEMPLATE, CALL_STRING_LIKE or CALL_OBJECT);
                      otherwise equal to ``form``
        template: Template literal carrying the content, if any
        arguments: Call arguments carrying the content, if any
        member: Tag name for ``styled.div`` style uses
        factory: Argument span for ``styled('div')`` style uses
        label: Name of the nearest enclosing declaration, if any
        position: For BARE_VALUE, the syntactic position of the identifier
    """
    binding: Binding
    form: InvocationForm
    location: SourceLocation
    start: int
    end: int
    spec: Optional['MacroSpec'] = None
    content_form: Optional[InvocationForm] = None
    template: Optional[TemplateLiteral] = None
    arguments: List[ExpressionSpan] = field(default_factory=list)
    member: Optional[str] = None
    factory: Optional[ExpressionSpan] = None
    label: Optional[str] = None
    position: ReferencePosition = ReferencePosition.EXPRESSION

    def __post_init__(self) -> None:
        if self.content_form is None:
            self.content_form = self.form


@dataclass(frozen=True)
class LiteralFragment:
    """Literal style text, raw template-literal source form"""
    text: str


@dataclass(frozen=True)
class SlotFragment:
    """
    Interpolation slot

    Attributes:
        expression: Source text of the re-inserted expression
        index: Dense 0..n-1 slot number within one sequence
        location: Where the expression started in the source
    """
    expression: str
    index: int
    location: Optional[SourceLocation] = None


Fragment = Union[LiteralFragment, SlotFragment]


class FragmentSequence:
    """
    Normalized, strictly alternating literal/slot sequence

    Literal text appended next to literal text is merged, empty literals are
    only kept where they separate two slots, and slot indices are assigned
    on append so they stay dense and unique even after splicing.

    Example:
        >>> seq = FragmentSequence()
        >>> seq.literal_append("width: ")
        >>> seq.slot_append("w")
        0
        >>> seq.literal_append(";")
        >>> [type(f).__name__ for f in seq]
        ['LiteralFragment', 'SlotFragment', 'LiteralFragment']
    """

    def __init__(self) -> None:
        self.items: List[Fragment] = []
        self.slot_count = 0

    def __iter__(self) -> Iterator[Fragment]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"FragmentSequence({self.items!r})"

    def literal_append(self, text: str) -> None:
        """Append literal text, merging with a preceding literal"""
        if not text:
            return
        if self.items and isinstance(self.items[-1], LiteralFragment):
            self.items[-1] = LiteralFragment(self.items[-1].text + text)
        else:
            self.items.append(LiteralFragment(text))

    def slot_append(self, expression: str, location: Optional[SourceLocation] = None) -> int:
        """Append an interpolation slot and return its index"""
        if self.items and isinstance(self.items[-1], SlotFragment):
            self.items.append(LiteralFragment(""))
        index = self.slot_count
        self.items.append(SlotFragment(expression, index, location))
        self.slot_count += 1
        return index

    def sequence_splice(self, other: 'FragmentSequence') -> None:
        """Append another sequence in place, renumbering its slots"""
        for item in other:
            if isinstance(item, LiteralFragment):
                self.literal_append(item.text)
            else:
                self.slot_append(item.expression, item.location)

    @property
    def literals(self) -> List[str]:
        return [item.text for item in self.items if isinstance(item, LiteralFragment)]

    @property
    def slots(self) -> List[SlotFragment]:
        return [item for item in self.items if isinstance(item, SlotFragment)]

    def literals_join(self, placeholder_make) -> str:
        """
        Join the sequence into one string with a placeholder per slot

        Args:
            placeholder_make: Callable mapping a slot index to its placeholder
                              (e.g. AppSettings.placeHolder_make)
        """
        parts = []
        for item in self.items:
            if isinstance(item, LiteralFragment):
                parts.append(item.text)
            else:
                parts.append(placeholder_make(item.index))
        return ''.join(parts)


@dataclass
class CompiledOutput:
    """
    Replacement produced for one materialized invocation

    Attributes:
        invocation: The invocation that was compiled
        code: Replacement source text (identical to the original for pass-through)
        fragments: Fragment sequence for content forms, None otherwise
        runtime_name: Local alias of the runtime export used, None for pass-through
    """
    invocation: Invocation
    code: str
    fragments: Optional[FragmentSequence] = None
    runtime_name: Optional[str] = None

    @property
    def start(self) -> int:
        return self.invocation.start

    @property
    def end(self) -> int:
        return self.invocation.end

    @property
    def is_passthrough(self) -> bool:
        return self.invocation.form is InvocationForm.PASS_THROUGH


@dataclass
class TransformResult:
    """
    Result of transforming one module

    Attributes:
        code: Transformed source
        outputs: Materialized compiled outputs in source order
        bindings: Macro bindings found, keyed by local name
        runtime_imports: Runtime export name -> local alias actually imported
        changed: Whether the code differs from the input
    """
    code: str
    outputs: List[CompiledOutput]
    bindings: Dict[str, Binding]
    runtime_imports: Dict[str, str]
    changed: bool
