"""
Macro specification and metadata models

Defines the call shapes a macro export may be used in and the MacroSpec
record the registry hands to the resolver, matcher and generator.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Set


class CallShape(Enum):
    """
    Syntactic shapes a macro export may appear in

    Used by the matcher to decide whether a use site is an invocation,
    a bare value reference, or an error.
    """
    TAGGED_TEMPLATE = "tagged-template"    # css`...`
    CALL = "call"                          # css(...)
    MEMBER_FACTORY = "member-factory"      # styled.div`...`, styled('div')(...)
    BARE_VALUE = "bare-value"              # const f = flush


@dataclass
class MacroSpec:
    """
    Specification for one export of the macro module

    Attributes:
        name: Export name (e.g. "css", "styled")
        description: Human-readable description
        shapes: Call shapes the export is eligible for
        runtime_export: Name of the runtime export that replaces it
        requires_module_import: Whether a require()-style import is fatal
        inline_nested: Whether a use nested in another macro's interpolation
                       is spliced into the parent's fragment sequence
        examples: Example usage strings
    """
    name: str
    description: str
    shapes: Set[CallShape]
    runtime_export: str = ""
    requires_module_import: bool = True
    inline_nested: bool = False
    examples: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.runtime_export:
            self.runtime_export = self.name

    def shape_allows(self, shape: CallShape) -> bool:
        """Check if this export may be used in the given call shape"""
        return shape in self.shapes

    def is_invocable(self) -> bool:
        """True for exports that take style content (anything beyond a bare value)"""
        return bool(self.shapes - {CallShape.BARE_VALUE})
