"""
stylemacro - Compile-time expansion of CSS-in-JS style macros

Engine package: source reader, binding resolver, call-site matcher, style
extractor, code generator and the compiler driving them.
"""

__version__ = "1.0.0"

from .parser import Parser
from .compiler import Compiler, transform
from .registry import MacroRegistry
from .diagnostics import (
    MacroError,
    ImportStyleViolationError,
    UnresolvedMacroError,
    MalformedMacroError,
    MacroRegistryError,
)
from .log import LOG, state_connectToLogger

__all__ = [
    "Parser",
    "Compiler",
    "transform",
    "MacroRegistry",
    "MacroError",
    "ImportStyleViolationError",
    "UnresolvedMacroError",
    "MalformedMacroError",
    "MacroRegistryError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
