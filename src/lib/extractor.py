"""
Style extractor

Splits an invocation's content into a FragmentSequence of literal text and
interpolation slots, in strict left-to-right source order.

Nested macro uses are resolved post-order: when an interpolation consists
of exactly one macro invocation whose export splices (css), that
invocation's own sequence is extracted first and spliced in place of the
slot. Recursion depth follows the nesting depth of the source. Any other
interpolation becomes a slot whose expression is rendered by the compiler,
so macro uses buried deeper in it are expanded in place.
"""

from typing import Callable, Optional

from ..models.invocation import CONTENT_FORMS, FragmentSequence, Invocation, InvocationForm
from ..models.parser import ExpressionSpan, TemplateLiteral, TokenKind
from .matcher import CallSiteMatcher


def string_toTemplateRaw(literal: str) -> str:
    """
    Convert a quoted string literal to template-literal raw text

    Escape pairs are kept as written; a bare backtick or '${' is escaped so
    the text can sit between backticks with the same cooked value.

    Example:
        >>> string_toTemplateRaw("'a`b ${c}'")
        'a\\\\`b \\\\${c}'
    """
    body = literal[1:-1]
    out = []
    position = 0
    while position < len(body):
        ch = body[position]
        if ch == '\\' and position + 1 < len(body):
            out.append(body[position:position + 2])
            position += 2
            continue
        if ch == '`':
            out.append('\\`')
        elif ch == '$' and body.startswith('${', position):
            out.append('\\$')
        else:
            out.append(ch)
        position += 1
    return ''.join(out)


class StyleExtractor:
    """
    Builds fragment sequences for content-carrying invocations

    Attributes:
        matcher: Used to recognize an interpolation that is itself a macro use
        renderer: Renders an expression span to source text with its own
                  macro uses expanded
    """

    def __init__(self, matcher: CallSiteMatcher, renderer: Callable[[ExpressionSpan], str]) -> None:
        self.matcher = matcher
        self.renderer = renderer

    def fragments_extract(self, invocation: Invocation) -> FragmentSequence:
        """
        Extract the fragment sequence of an invocation

        Args:
            invocation: A TAGGED_TEMPLATE, CALL_STRING_LIKE, CALL_OBJECT or
                        MEMBER_OR_FACTORY invocation

        Returns:
            Normalized FragmentSequence (empty for ``css()``)
        """
        sequence = FragmentSequence()

        if invocation.template is not None:
            self.template_extract(invocation.template, sequence)
            return sequence

        if invocation.content_form is InvocationForm.CALL_STRING_LIKE:
            if invocation.arguments:
                token = invocation.arguments[0].tokens[0]
                if token.kind is TokenKind.TEMPLATE:
                    self.template_extract(token.template, sequence)
                else:
                    sequence.literal_append(string_toTemplateRaw(token.value))
            return sequence

        # CALL_OBJECT: every argument is one opaque slot
        for argument in invocation.arguments:
            self.slot_extract(argument, sequence)
        return sequence

    def template_extract(self, template: TemplateLiteral, sequence: FragmentSequence) -> None:
        """Append quasis and interpolations of a template in source order"""
        for index, quasi in enumerate(template.quasis):
            sequence.literal_append(quasi.raw)
            if index < len(template.expressions):
                self.slot_extract(template.expressions[index], sequence)

    def slot_extract(self, expression: ExpressionSpan, sequence: FragmentSequence) -> None:
        """
        Append one interpolation: spliced if it is a nested macro use,
        otherwise as a slot holding the rendered expression
        """
        nested = self.nested_resolve(expression)
        if nested is not None:
            sequence.sequence_splice(self.fragments_extract(nested))
            return

        location = expression.tokens[0].location if expression.tokens else None
        sequence.slot_append(self.renderer(expression).strip(), location)

    def nested_resolve(self, expression: ExpressionSpan) -> Optional[Invocation]:
        """
        The invocation filling the whole expression, if it splices

        Returns:
            Invocation to splice, or None when the expression is anything
            other than exactly one content use of an inline_nested macro
        """
        if not expression.tokens:
            return None
        matched = self.matcher.invocation_matchAt(expression.tokens, 0)
        if matched is None:
            return None
        invocation, next_index = matched
        if next_index != len(expression.tokens):
            return None
        if invocation.form not in CONTENT_FORMS or invocation.form is InvocationForm.MEMBER_OR_FACTORY:
            return None
        if not invocation.spec.inline_nested:
            return None
        return invocation
