"""
Pygments lexer for the JavaScript subset the macro pass reads

Only as much of the language is recognized as the macro pass needs to find
imports, identifiers, calls and template literals. Template literals keep
their structure through dedicated token types, and ${...} interpolations
nest to any depth through the lexer's state stack.

Token types:
- Name.Other: Identifiers
- Keyword: Reserved words (after which a '/' starts a regex)
- Punctuation / Operator: Brackets, separators and operators
- String.Single / String.Double / String.Regex / Number: Literals
- TemplateStart / TemplateChunk / TemplateEnd: Template literal pieces
- InterpolationStart / InterpolationEnd: ${ and its matching }
"""

from pygments.lexer import RegexLexer, include, default
from pygments.token import (
    Text,
    Comment,
    Punctuation,
    Operator,
    Name,
    Keyword,
    String,
    Number,
)


TemplateStart = String.Backtick.Start
TemplateChunk = String.Backtick.Chunk
TemplateEnd = String.Backtick.End
InterpolationStart = String.Interpol.Start
InterpolationEnd = String.Interpol.End

IDENTIFIER = r'(?:[^\W\d]|\$)[\w$]*'

KEYWORDS = (
    'await', 'break', 'case', 'catch', 'class', 'const', 'continue', 'debugger',
    'default', 'delete', 'do', 'else', 'export', 'extends', 'finally', 'for',
    'function', 'if', 'import', 'in', 'instanceof', 'let', 'new', 'of', 'return',
    'switch', 'throw', 'try', 'typeof', 'var', 'void', 'while', 'with', 'yield',
)


class MacroSourceLexer(RegexLexer):
    """
    Lexer for JavaScript modules that may use the style macros

    Example:
        css`color: ${c};`

    Tokens:
        css → Name.Other
        ` → TemplateStart
        color:  → TemplateChunk
        ${ → InterpolationStart
        c → Name.Other
        } → InterpolationEnd
        ; → TemplateChunk
        ` → TemplateEnd
    """

    name = 'StyleMacroSource'
    aliases = ['stylemacro-js']
    filenames = ['*.js', '*.mjs', '*.jsx']

    tokens = {
        'commentsandwhitespace': [
            (r'\s+', Text.Whitespace),
            (r'//[^\n]*', Comment.Single),
            (r'/\*[\s\S]*?\*/', Comment.Multiline),
        ],

        'slashstartsregex': [
            include('commentsandwhitespace'),
            (r'/(\\.|[^[/\\\n]|\[(\\.|[^\]\\\n])*])+/[a-z]*', String.Regex, '#pop'),
            default('#pop'),
        ],

        'expression': [
            include('commentsandwhitespace'),

            # Template literal (structure rebuilt by the parser)
            (r'`', TemplateStart, 'template'),

            # Quoted strings
            (r'"(\\\\|\\[^\\]|[^"\\\n])*"', String.Double),
            (r"'(\\\\|\\[^\\]|[^'\\\n])*'", String.Single),

            # Numbers (hex/octal/binary, decimal, exponent, BigInt suffix)
            (r'(0[xXoObB][0-9a-fA-F_]+|(\d[\d_]*\.?[\d_]*|\.\d[\d_]*)([eE][+-]?\d+)?)n?', Number),

            # Reserved words; a following '/' starts a regex
            (r'(%s)\b' % '|'.join(KEYWORDS), Keyword, 'slashstartsregex'),

            (IDENTIFIER, Name.Other),

            (r'\.\.\.|\?\.(?!\d)|\.', Punctuation),
            (r'=>', Punctuation, 'slashstartsregex'),
            (r'[(\[;,]', Punctuation, 'slashstartsregex'),
            (r'[)\]]', Punctuation),
            (r'\+\+|--', Operator),
            (r'(===?|!==?|<<=?|>>>?=?|<=|>=|&&=?|\|\|=?|\?\?=?|\*\*=?|[-+*/%&|^]=?|[<>!~?:=])',
             Operator, 'slashstartsregex'),

            # Private fields, decorators
            (r'[#@]', Punctuation),
        ],

        'root': [
            include('expression'),
            (r'\{', Punctuation, 'slashstartsregex'),
            (r'\}', Punctuation),
        ],

        'template': [
            (r'`', TemplateEnd, '#pop'),
            (r'\$\{', InterpolationStart, ('interpolation', 'slashstartsregex')),
            (r'\\[\s\S]', TemplateChunk),
            (r'\$', TemplateChunk),
            (r'[^`\\$]+', TemplateChunk),
        ],

        'interpolation': [
            include('expression'),
            (r'\{', Punctuation, ('brace', 'slashstartsregex')),
            (r'\}', InterpolationEnd, '#pop'),
        ],

        # Object literals and blocks inside an interpolation
        'brace': [
            include('expression'),
            (r'\{', Punctuation, ('brace', 'slashstartsregex')),
            (r'\}', Punctuation, '#pop'),
        ],
    }


def get_lexer() -> MacroSourceLexer:
    """
    Get the MacroSourceLexer instance

    Returns:
        MacroSourceLexer instance ready for use with Pygments
    """
    return MacroSourceLexer()
