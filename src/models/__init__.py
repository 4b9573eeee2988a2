"""
Models package for stylemacro

Contains data structures and type definitions for the macro pass and the
command-line driver.
"""

from .state import ProgramState, pipeline
from .macros import MacroSpec, CallShape
from .parser import (
    TokenKind,
    Token,
    SourceLocation,
    ExpressionSpan,
    TemplateQuasi,
    TemplateLiteral,
    ImportMechanism,
    ImportSpecifier,
    ImportDeclaration,
    ModuleSource,
)
from .invocation import (
    UNKNOWN_EXPORT,
    Binding,
    InvocationForm,
    ReferencePosition,
    Invocation,
    LiteralFragment,
    SlotFragment,
    FragmentSequence,
    CompiledOutput,
    TransformResult,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "MacroSpec",
    "CallShape",
    "TokenKind",
    "Token",
    "SourceLocation",
    "ExpressionSpan",
    "TemplateQuasi",
    "TemplateLiteral",
    "ImportMechanism",
    "ImportSpecifier",
    "ImportDeclaration",
    "ModuleSource",
    "UNKNOWN_EXPORT",
    "Binding",
    "InvocationForm",
    "ReferencePosition",
    "Invocation",
    "LiteralFragment",
    "SlotFragment",
    "FragmentSequence",
    "CompiledOutput",
    "TransformResult",
]
