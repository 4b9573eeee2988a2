"""
Diagnostics for the macro pass

Every fatal condition of the pass is raised from here so that messages
carry the same shape: a description, the file and position, and the source
line with a caret under the offending column.

Taxonomy:
- ImportStyleViolationError: an invocation-style macro imported via require()
- UnresolvedMacroError: a macro binding that is reassigned or re-declared,
  so its uses (nested or not) cannot be resolved statically
- MalformedMacroError: source the reader or matcher cannot make sense of
- MacroRegistryError: a macro manifest that cannot be loaded

Importing an unknown name from the macro module is not an error; those
uses pass through untouched.
"""

from typing import NoReturn, Optional

from ..models.parser import SourceLocation, Token
from ..models.invocation import Binding


class MacroError(SyntaxError):
    """
    Base class for fatal macro-pass errors

    Subclasses SyntaxError so drivers can treat reader and macro failures
    alike. ``str(error)`` is the full formatted message.

    Attributes:
        filename: Module the error was found in
        line: 1-based line, or None when not tied to a position
        column: 1-based column, or None
    """

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return self.msg


class ImportStyleViolationError(MacroError):
    """Macro imported through require() instead of an import declaration"""


class UnresolvedMacroError(MacroError):
    """Macro binding that cannot be resolved statically"""


class MalformedMacroError(MacroError):
    """Source the macro pass cannot analyze"""


class MacroRegistryError(Exception):
    """Raised when the macro manifest cannot be loaded or validated"""
    pass


class DiagnosticsReporter:
    """
    Builds and raises located errors for one module

    Errors abort the module's transformation; nothing is collected.
    """

    def __init__(self, source: str, filename: str) -> None:
        self.source = source
        self.filename = filename

    def context_render(self, position: int, location: SourceLocation) -> str:
        """
        Render the source line containing position with a caret under it

        Example output:
            Context: const A = styled('div')`
                               ^
        """
        line_start = self.source.rfind('\n', 0, position) + 1
        line_end = self.source.find('\n', position)
        if line_end == -1:
            line_end = len(self.source)
        line_text = self.source[line_start:line_end]
        return (
            f"Context: {line_text}\n"
            f"         {' ' * (location.column - 1)}^"
        )

    def error(
        self,
        error_class: type,
        message: str,
        position: int,
        location: SourceLocation,
    ) -> NoReturn:
        """
        Raise error_class with file, position and source context

        Args:
            error_class: MacroError subclass to raise
            message: Human-readable error description
            position: Source offset the error refers to
            location: Line/column of position

        Raises:
            MacroError: Always (this is an error reporting function)
        """
        raise error_class(
            f"{message}\n"
            f"{self.filename}: Line {location.line}, column {location.column}\n"
            f"{self.context_render(position, location)}",
            filename=self.filename,
            line=location.line,
            column=location.column,
        )

    def importStyle_violate(self, binding: Binding, token: Token) -> NoReturn:
        """A recognized invocation macro was bound with require()"""
        self.error(
            ImportStyleViolationError,
            f"the '{binding.exported_name}' macro must be imported with module syntax "
            f"(es modules): found require('{binding.macro_module_path}') "
            f"binding '{binding.local_name}'",
            token.start,
            token.location,
        )

    def macro_unresolved(self, binding: Binding, token: Token) -> NoReturn:
        """A macro binding is reassigned, so this use cannot be analyzed"""
        self.error(
            UnresolvedMacroError,
            f"cannot statically resolve macro '{binding.local_name}': "
            f"the binding is reassigned or re-declared in this module",
            token.start,
            token.location,
        )

    def malformed(self, message: str, token: Token) -> NoReturn:
        """The source around token cannot be analyzed"""
        self.error(MalformedMacroError, message, token.start, token.location)
