"""
Reader for JavaScript modules that use the style macros

Turns source text into a ModuleSource: a token list in which every template
literal is one token carrying its quasis and interpolation token lists, plus
the module's import/require declarations and the names it reassigns.

The parser operates in two phases:
1. Lexing: MacroSourceLexer tokens are grouped, templates rebuilt recursively
2. Scanning: Locate import and require declarations, reassigned names

Key features:
- Exact source offsets and 1-based line/column for every token
- Arbitrarily nested template literals inside ${...}
- Both module-style and require-style declarations recorded with full spans

Example:
    >>> module = Parser("import { css } from './macro'\\ncss`a`").parse()
    >>> module.imports[0].specifiers[0].local
    'css'
    >>> module.tokens[-1].kind
    <TokenKind.TEMPLATE: 'template'>
"""

import bisect
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from pygments.token import Comment, Keyword, Name, Number, Operator, Punctuation, String, Text

from ..models.parser import (
    ExpressionSpan,
    ImportDeclaration,
    ImportMechanism,
    ImportSpecifier,
    ModuleSource,
    SourceLocation,
    TemplateLiteral,
    TemplateQuasi,
    Token,
    TokenKind,
)
from .diagnostics import DiagnosticsReporter, MalformedMacroError
from .lexer import (
    get_lexer,
    TemplateStart,
    TemplateChunk,
    TemplateEnd,
    InterpolationStart,
    InterpolationEnd,
)


OPENERS = {'(': ')', '[': ']', '{': '}'}
CLOSERS = {')', ']', '}'}

ASSIGNMENT_OPERATORS = {
    '=', '+=', '-=', '*=', '/=', '%=', '**=', '<<=', '>>=', '>>>=',
    '&=', '|=', '^=', '&&=', '||=', '??=',
}

DECLARATION_KEYWORDS = {'const', 'let', 'var'}


@dataclass
class _TemplateFrame:
    """Template literal under construction while lexing"""
    start: int
    parent: List[Token]
    quasi_start: int
    quasis: List[TemplateQuasi] = field(default_factory=list)
    expressions: List[ExpressionSpan] = field(default_factory=list)
    expression_start: int = 0
    tokens: List[Token] = field(default_factory=list)


def brace_findMatching(tokens: List[Token], index: int) -> Optional[int]:
    """
    Find the token closing the bracket at index using depth tracking

    All three bracket kinds share one depth counter; template literals are
    single tokens so braces inside them never interfere.

    Args:
        tokens: Token list containing the opening bracket
        index: Index of an opening '(', '[' or '{'

    Returns:
        Index of the matching closer, or None if the list ends first

    Example:
        For tokens of "f(a, {b: [c]}) + 1" and index of '(':
        Returns the index of the final ')'
    """
    depth = 0
    for position in range(index, len(tokens)):
        token = tokens[position]
        if token.kind is not TokenKind.PUNCTUATOR:
            continue
        if token.value in OPENERS:
            depth += 1
        elif token.value in CLOSERS:
            depth -= 1
            if depth == 0:
                return position
    return None


class Parser:
    """
    Reader producing a ModuleSource from JavaScript source text

    Handles:
    - import declarations (default, named, aliased, namespace, side-effect)
    - require declarations (identifier, object pattern, member access)
    - reassignment detection for statically unresolvable bindings
    - error reporting with line/column and source context
    """

    def __init__(self, source: str, filename: str = "<module>"):
        """
        Initialize parser with source text

        Args:
            source: Module source text
            filename: Name used in diagnostics
        """
        self.source = source
        self.filename = filename
        self.reporter = DiagnosticsReporter(source, filename)
        self.line_starts = [0] + [i + 1 for i, ch in enumerate(source) if ch == '\n']
        self.declaration_spans: List[Tuple[int, int]] = []

    def parse(self) -> ModuleSource:
        """
        Parse source text into a ModuleSource

        Returns:
            ModuleSource with tokens, imports, reassigned names and identifiers

        Raises:
            MalformedMacroError: If a template literal is not terminated
        """
        tokens = self.tokens_lex()
        imports = self.imports_scan(tokens)
        self.declaration_spans = [(decl.start, decl.end) for decl in imports]

        reassigned: Set[str] = set()
        identifiers: Set[str] = set()
        self.assignments_scan(tokens, reassigned, identifiers)

        return ModuleSource(
            source=self.source,
            filename=self.filename,
            tokens=tokens,
            imports=imports,
            reassigned=reassigned,
            identifiers=identifiers,
        )

    def location_at(self, position: int) -> SourceLocation:
        """Line/column (both 1-based) of a source offset"""
        line_index = bisect.bisect_right(self.line_starts, position) - 1
        return SourceLocation(line_index + 1, position - self.line_starts[line_index] + 1)

    def tokens_lex(self) -> List[Token]:
        """
        Lex the source and group template literals into single tokens

        Whitespace and comments are dropped. Quasi text is sliced straight
        from the source so escapes stay exactly as written.

        Returns:
            Top-level token list
        """
        root: List[Token] = []
        current: Optional[List[Token]] = root
        frames: List[_TemplateFrame] = []

        for index, tokentype, value in get_lexer().get_tokens_unprocessed(self.source):
            if tokentype in Text or tokentype in Comment:
                continue

            if tokentype is TemplateStart:
                frames.append(_TemplateFrame(start=index, parent=current, quasi_start=index + 1))
                current = None
                continue

            if tokentype is TemplateChunk:
                continue

            if tokentype is InterpolationStart:
                frame = frames[-1]
                frame.quasis.append(self.quasi_make(frame.quasi_start, index))
                frame.expression_start = index + 2
                frame.tokens = []
                current = frame.tokens
                continue

            if tokentype is InterpolationEnd:
                frame = frames[-1]
                frame.expressions.append(
                    ExpressionSpan(tokens=frame.tokens, start=frame.expression_start, end=index)
                )
                frame.quasi_start = index + 1
                current = None
                continue

            if tokentype is TemplateEnd:
                frame = frames.pop()
                frame.quasis.append(self.quasi_make(frame.quasi_start, index))
                end = index + 1
                template = TemplateLiteral(
                    quasis=frame.quasis,
                    expressions=frame.expressions,
                    start=frame.start,
                    end=end,
                )
                current = frame.parent
                current.append(Token(
                    kind=TokenKind.TEMPLATE,
                    value=self.source[frame.start:end],
                    start=frame.start,
                    end=end,
                    location=self.location_at(frame.start),
                    template=template,
                ))
                continue

            current.append(Token(
                kind=self.kind_classify(tokentype),
                value=value,
                start=index,
                end=index + len(value),
                location=self.location_at(index),
            ))

        if frames:
            start = frames[0].start
            self.reporter.error(
                MalformedMacroError,
                "Unterminated template literal",
                start,
                self.location_at(start),
            )

        return root

    def quasi_make(self, start: int, end: int) -> TemplateQuasi:
        return TemplateQuasi(raw=self.source[start:end], start=start, end=end)

    @staticmethod
    def kind_classify(tokentype) -> TokenKind:
        """Map a pygments token type onto a TokenKind"""
        if tokentype in Keyword:
            return TokenKind.KEYWORD
        if tokentype in Name:
            return TokenKind.IDENTIFIER
        if tokentype in String.Regex:
            return TokenKind.REGEX
        if tokentype in String:
            return TokenKind.STRING
        if tokentype in Number:
            return TokenKind.NUMBER
        if tokentype in Punctuation:
            return TokenKind.PUNCTUATOR
        if tokentype in Operator:
            return TokenKind.OPERATOR
        return TokenKind.UNKNOWN

    def imports_scan(self, tokens: List[Token]) -> List[ImportDeclaration]:
        """
        Find import statements and require declarations at the top level

        Dynamic ``import(...)`` and ``import.meta`` are not declarations and
        are skipped.

        Returns:
            ImportDeclarations in source order
        """
        declarations: List[ImportDeclaration] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            following = tokens[index + 1] if index + 1 < len(tokens) else None

            if (
                token.kind is TokenKind.KEYWORD
                and token.value == 'import'
                and following is not None
                and following.value not in ('(', '.')
            ):
                declaration, index = self.importDeclaration_parse(tokens, index)
                declarations.append(declaration)
                continue

            if token.kind is TokenKind.IDENTIFIER and token.value == 'require':
                declaration = self.requireDeclaration_parse(tokens, index)
                if declaration is not None:
                    declarations.append(declaration)

            index += 1

        declarations.sort(key=lambda decl: decl.start)
        return declarations

    def importDeclaration_parse(self, tokens: List[Token], index: int) -> Tuple[ImportDeclaration, int]:
        """
        Parse one import statement starting at the 'import' keyword

        Returns:
            (declaration, index of the first token after the statement)

        Raises:
            MalformedMacroError: If no module source string is found
        """
        keyword = tokens[index]
        specifiers: List[ImportSpecifier] = []
        position = index + 1

        while position < len(tokens):
            token = tokens[position]

            if token.kind is TokenKind.STRING:
                break

            if token.value == '{':
                close = brace_findMatching(tokens, position)
                if close is None:
                    self.reporter.malformed("Unterminated import specifier list", token)
                specifiers.extend(self.specifierList_parse(tokens[position + 1:close]))
                position = close + 1
                continue

            if token.value == '*':
                # * as namespace
                local = tokens[position + 2] if position + 2 < len(tokens) else None
                if local is None or not local.is_word():
                    self.reporter.malformed("Expected namespace name after 'import * as'", token)
                specifiers.append(ImportSpecifier(imported='*', local=local.value))
                position += 3
                continue

            if token.kind is TokenKind.IDENTIFIER and token.value == 'from':
                position += 1
                continue

            if token.kind is TokenKind.IDENTIFIER:
                specifiers.append(ImportSpecifier(imported='default', local=token.value))

            if token.value == ';':
                break

            position += 1

        if position >= len(tokens) or tokens[position].kind is not TokenKind.STRING:
            self.reporter.malformed("Import declaration without a module source", keyword)

        source_token = tokens[position]
        end = source_token.end
        position += 1
        if position < len(tokens) and tokens[position].value == ';':
            end = tokens[position].end
            position += 1

        declaration = ImportDeclaration(
            source=source_token.value[1:-1],
            specifiers=specifiers,
            mechanism=ImportMechanism.MODULE,
            start=keyword.start,
            end=end,
            location=keyword.location,
        )
        return declaration, position

    def specifierList_parse(self, tokens: List[Token]) -> List[ImportSpecifier]:
        """
        Parse the names between braces of an import or a require pattern

        Entries are 'name', 'name as local' (imports) or 'name: local'
        (object patterns); the first word is the imported name and the last
        the local one.

        Args:
            tokens: Tokens strictly inside the braces

        Returns:
            ImportSpecifiers in order
        """
        specifiers: List[ImportSpecifier] = []
        entry: List[Token] = []
        for token in tokens + [None]:
            if token is not None and token.value != ',':
                entry.append(token)
                continue
            if entry:
                names = [t for t in entry if t.is_word() or t.kind is TokenKind.STRING]
                names = [t for t in names if t.value != 'as']
                if names:
                    imported = names[0].value.strip('\'"')
                    local = names[-1].value
                    specifiers.append(ImportSpecifier(imported=imported, local=local))
            entry = []
        return specifiers

    def requireDeclaration_parse(self, tokens: List[Token], index: int) -> Optional[ImportDeclaration]:
        """
        Recognize a require declaration around the 'require' at index

        Supported shapes:
            const x = require('m')
            const { a, b: c } = require('m')
            const x = require('m').name

        Returns:
            ImportDeclaration with DYNAMIC mechanism, or None for other uses
        """
        if index > 0 and tokens[index - 1].value in ('.', '?.'):
            return None
        if index + 3 >= len(tokens):
            return None
        if tokens[index + 1].value != '(' or tokens[index + 2].kind is not TokenKind.STRING:
            return None
        if tokens[index + 3].value != ')':
            return None

        source = tokens[index + 2].value[1:-1]
        last = index + 3
        member = None
        if (
            last + 2 < len(tokens)
            and tokens[last + 1].value == '.'
            and tokens[last + 2].is_word()
        ):
            member = tokens[last + 2].value
            last += 2

        if index < 3 or tokens[index - 1].value != '=':
            return None

        target = index - 2
        specifiers: List[ImportSpecifier]
        if tokens[target].kind is TokenKind.IDENTIFIER:
            specifiers = [ImportSpecifier(imported=member or 'default', local=tokens[target].value)]
            keyword_index = target - 1
        elif tokens[target].value == '}' and member is None:
            open_index = self.brace_findOpening(tokens, target)
            if open_index is None:
                return None
            specifiers = self.specifierList_parse(tokens[open_index + 1:target])
            keyword_index = open_index - 1
        else:
            return None

        if keyword_index < 0 or tokens[keyword_index].value not in DECLARATION_KEYWORDS:
            return None

        end = tokens[last].end
        if last + 1 < len(tokens) and tokens[last + 1].value == ';':
            end = tokens[last + 1].end

        keyword = tokens[keyword_index]
        return ImportDeclaration(
            source=source,
            specifiers=specifiers,
            mechanism=ImportMechanism.DYNAMIC,
            start=keyword.start,
            end=end,
            location=keyword.location,
        )

    @staticmethod
    def brace_findOpening(tokens: List[Token], index: int) -> Optional[int]:
        """Walk backwards from a closing '}' to its '{'"""
        depth = 0
        for position in range(index, -1, -1):
            value = tokens[position].value
            if tokens[position].kind is not TokenKind.PUNCTUATOR:
                continue
            if value == '}':
                depth += 1
            elif value == '{':
                depth -= 1
                if depth == 0:
                    return position
        return None

    def declaration_contains(self, token: Token) -> bool:
        """True if token lies inside an import or require declaration"""
        for start, end in self.declaration_spans:
            if start <= token.start < end:
                return True
        return False

    def assignments_scan(self, tokens: List[Token], reassigned: Set[str], identifiers: Set[str]) -> None:
        """
        Record reassigned names and all identifiers, recursing into templates

        A name counts as reassigned when it is the target of an assignment
        or update operator, or is declared as a function or class. Names
        inside import/require declarations are their own bindings and are
        not counted.
        """
        for index, token in enumerate(tokens):
            if token.template is not None:
                for expression in token.template.expressions:
                    self.assignments_scan(expression.tokens, reassigned, identifiers)
                continue

            if token.kind is not TokenKind.IDENTIFIER:
                continue

            identifiers.add(token.value)

            if self.declaration_contains(token):
                continue

            previous = tokens[index - 1] if index > 0 else None
            following = tokens[index + 1] if index + 1 < len(tokens) else None

            if previous is not None and previous.value in ('.', '?.'):
                continue

            if following is not None and following.kind is TokenKind.OPERATOR:
                if following.value in ASSIGNMENT_OPERATORS or following.value in ('++', '--'):
                    reassigned.add(token.value)
                    continue

            if previous is not None:
                if previous.kind is TokenKind.OPERATOR and previous.value in ('++', '--'):
                    reassigned.add(token.value)
                elif previous.kind is TokenKind.KEYWORD and previous.value in ('function', 'class'):
                    reassigned.add(token.value)

