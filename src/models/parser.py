"""
Parser-specific data models

Type-safe structures produced by the source reader: tokens, template
literals, import declarations and the per-module ModuleSource bundle.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set


class TokenKind(Enum):
    """Coarse token classes the macro engine cares about"""
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    PUNCTUATOR = "punctuator"
    OPERATOR = "operator"
    STRING = "string"
    NUMBER = "number"
    REGEX = "regex"
    TEMPLATE = "template"      # whole template literal, see Token.template
    UNKNOWN = "unknown"


class ImportMechanism(Enum):
    """How a module binding was brought into scope"""
    MODULE = "module"      # import x from '...'
    DYNAMIC = "dynamic"    # const x = require('...')


@dataclass(frozen=True)
class SourceLocation:
    """
    Position of a token in the original source

    Attributes:
        line: 1-based line number
        column: 1-based column number
    """
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Token:
    """
    A significant (non-whitespace, non-comment) source token

    Template literals are collapsed into a single TEMPLATE token whose
    ``template`` attribute holds the quasis and interpolation token lists.

    Attributes:
        kind: Token class
        value: Exact source text of the token
        start: Offset of the first character in the source
        end: Offset one past the last character
        location: Line/column of ``start``
        template: Structure of a TEMPLATE token, None otherwise
    """
    kind: TokenKind
    value: str
    start: int
    end: int
    location: SourceLocation
    template: Optional['TemplateLiteral'] = None

    def is_word(self) -> bool:
        """True for identifiers and keywords (both may be property names)"""
        return self.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD)


@dataclass
class ExpressionSpan:
    """
    A sub-expression of the source: an interpolation body or a call argument

    Attributes:
        tokens: Tokens of the expression, in source order
        start: Source offset where the expression text begins
        end: Source offset one past where it ends
    """
    tokens: List[Token]
    start: int
    end: int


@dataclass
class TemplateQuasi:
    """
    Literal chunk of a template literal

    Attributes:
        raw: Raw source text between delimiters (escapes untouched)
        start: Source offset of the chunk
        end: Source offset one past the chunk
    """
    raw: str
    start: int
    end: int


@dataclass
class TemplateLiteral:
    """
    Structure of a template literal

    Invariant: ``len(quasis) == len(expressions) + 1``; quasis and
    expressions interleave in source order starting with a quasi.

    Example:
        For source "`a${b}c`":
        TemplateLiteral(
            quasis=[TemplateQuasi(raw="a"), TemplateQuasi(raw="c")],
            expressions=[ExpressionSpan(tokens=[<b>])],
        )
    """
    quasis: List[TemplateQuasi]
    expressions: List[ExpressionSpan]
    start: int
    end: int


@dataclass(frozen=True)
class ImportSpecifier:
    """
    One name brought in by an import or require

    Attributes:
        imported: Exported name ("default" for default imports and whole-module
                  requires, "*" for namespace imports)
        local: Local identifier bound in the module
    """
    imported: str
    local: str


@dataclass
class ImportDeclaration:
    """
    A module-level import statement or require-style declaration

    Attributes:
        source: Module path as written (quotes stripped)
        specifiers: Bound names, empty for side-effect imports
        mechanism: MODULE for import statements, DYNAMIC for require()
        start: Offset where the statement begins
        end: Offset one past the statement (including a trailing ';')
        location: Line/column of ``start``
    """
    source: str
    specifiers: List[ImportSpecifier]
    mechanism: ImportMechanism
    start: int
    end: int
    location: SourceLocation


@dataclass
class ModuleSource:
    """
    Everything the macro pass needs to know about one module

    Attributes:
        source: Original source text
        filename: Name used in diagnostics and source metadata
        tokens: Top-level token list (templates collapsed)
        imports: Import and require declarations in source order
        reassigned: Names assigned to or re-declared anywhere in the module
        identifiers: Every identifier spelled in the module
    """
    source: str
    filename: str
    tokens: List[Token]
    imports: List[ImportDeclaration] = field(default_factory=list)
    reassigned: Set[str] = field(default_factory=set)
    identifiers: Set[str] = field(default_factory=set)
