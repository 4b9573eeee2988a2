"""
stylemacro - Compile-time expansion of CSS-in-JS style macros

Rewrites uses of styled, css, keyframes, fontFace, injectGlobal, hydrate and
flush imported from a macro module into calls on the CSS-in-JS runtime.
"""

__version__ = "1.0.0"

from .lib import (
    Parser,
    Compiler,
    transform,
    MacroRegistry,
    MacroError,
    ImportStyleViolationError,
    UnresolvedMacroError,
    MalformedMacroError,
    MacroRegistryError,
    LOG,
    state_connectToLogger,
)

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
