"""
Call-site matcher

Finds every reference to a macro binding in a token list and classifies it
once into an InvocationForm:

    css`...`                    TAGGED_TEMPLATE
    css()  css('...')  css(`...`)   CALL_STRING_LIKE
    css({...})  css(a, b)       CALL_OBJECT
    styled.div`...`  styled('div')({...})   MEMBER_OR_FACTORY
    const f = flush             BARE_VALUE
    thisDoesNotExist            PASS_THROUGH

Each Invocation records where its content lives (template literal or call
arguments) so the extractor never has to re-scan the source.
"""

from typing import Dict, List, Optional, Tuple

from ..models.invocation import Binding, Invocation, InvocationForm, ReferencePosition
from ..models.macros import CallShape, MacroSpec
from ..models.parser import ExpressionSpan, ImportMechanism, ModuleSource, Token, TokenKind
from .diagnostics import DiagnosticsReporter
from .parser import CLOSERS, OPENERS, brace_findMatching
from .registry import MacroRegistry


# Tokens after which "name(...) {" is a method definition, not a call
METHOD_PREFIXES = ('{', ',', ';', '}', '*', 'get', 'set', 'static', 'async')


class CallSiteMatcher:
    """
    Classifies uses of macro bindings within one module

    Raises on first use of a require()-bound invocation macro and on uses of
    bindings the module reassigns.
    """

    def __init__(
        self,
        module: ModuleSource,
        bindings: Dict[str, Binding],
        registry: MacroRegistry,
        reporter: DiagnosticsReporter,
    ) -> None:
        self.module = module
        self.bindings = bindings
        self.registry = registry
        self.reporter = reporter
        self.declaration_spans = [(decl.start, decl.end) for decl in module.imports]

    def invocations_match(self) -> List[Invocation]:
        """Match every use at module level, in source order"""
        return self.tokens_scan(self.module.tokens)

    def tokens_scan(self, tokens: List[Token]) -> List[Invocation]:
        """
        Match uses in a token list

        Content of a matched invocation is skipped (the extractor owns it).
        Interpolations of other template literals are scanned recursively.

        Args:
            tokens: Token list (module level, interpolation or argument)

        Returns:
            Invocations in source order
        """
        found: List[Invocation] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if self.declaration_contains(token):
                index += 1
                continue

            matched = self.invocation_matchAt(tokens, index)
            if matched is not None:
                invocation, index = matched
                found.append(invocation)
                continue

            if token.template is not None:
                for expression in token.template.expressions:
                    found.extend(self.tokens_scan(expression.tokens))
            index += 1
        return found

    def declaration_contains(self, token: Token) -> bool:
        for start, end in self.declaration_spans:
            if start <= token.start < end:
                return True
        return False

    def invocation_matchAt(self, tokens: List[Token], index: int) -> Optional[Tuple[Invocation, int]]:
        """
        Classify the use starting at tokens[index], if it is one

        Args:
            tokens: Token list being scanned
            index: Position of a candidate identifier

        Returns:
            (invocation, index of the first token after it), or None if
            tokens[index] is not a reference to a macro binding

        Raises:
            ImportStyleViolationError: require()-bound invocation macro
            UnresolvedMacroError: binding reassigned in the module
            MalformedMacroError: macro used in a shape it does not accept
        """
        token = tokens[index]
        if token.kind is not TokenKind.IDENTIFIER:
            return None
        binding = self.bindings.get(token.value)
        if binding is None or not self.reference_isCandidate(tokens, index):
            return None

        label = self.label_derive(tokens, index)

        if binding.is_unknown:
            return self.reference_make(binding, InvocationForm.PASS_THROUGH, token, None, label), index + 1

        spec = self.registry.get(binding.exported_name)

        if binding.import_mechanism is ImportMechanism.DYNAMIC:
            if spec.requires_module_import:
                self.reporter.importStyle_violate(binding, token)
            return self.reference_make(binding, InvocationForm.PASS_THROUGH, token, spec, label), index + 1

        if binding.local_name in self.module.reassigned:
            self.reporter.macro_unresolved(binding, token)

        following = self.token_peek(tokens, index + 1)

        if following is not None and following.kind is TokenKind.TEMPLATE:
            if spec.shape_allows(CallShape.TAGGED_TEMPLATE):
                invocation = Invocation(
                    binding=binding,
                    form=InvocationForm.TAGGED_TEMPLATE,
                    location=token.location,
                    start=token.start,
                    end=following.end,
                    spec=spec,
                    template=following.template,
                    label=label,
                )
                return invocation, index + 2

        elif following is not None and following.value == '(':
            close = self.closer_find(tokens, index + 1)
            after = self.token_peek(tokens, close + 1)

            if spec.shape_allows(CallShape.MEMBER_FACTORY) and self.content_starts(after):
                inner = tokens[index + 2:close]
                if not inner:
                    self.reporter.malformed(f"'{token.value}()' needs a tag or component argument", token)
                factory = ExpressionSpan(tokens=inner, start=tokens[index + 1].end, end=tokens[close].start)
                return self.memberFactory_match(
                    tokens, close + 1, binding, spec, token, label, factory=factory
                )

            if spec.shape_allows(CallShape.CALL):
                arguments = self.arguments_split(tokens, index + 1, close)
                invocation = Invocation(
                    binding=binding,
                    form=self.callForm_classify(arguments),
                    location=token.location,
                    start=token.start,
                    end=tokens[close].end,
                    spec=spec,
                    arguments=arguments,
                    label=label,
                )
                return invocation, close + 1

        elif following is not None and following.value == '.':
            member = self.token_peek(tokens, index + 2)
            after = self.token_peek(tokens, index + 3)
            if (
                member is not None
                and member.is_word()
                and spec.shape_allows(CallShape.MEMBER_FACTORY)
                and self.content_starts(after)
            ):
                return self.memberFactory_match(
                    tokens, index + 3, binding, spec, token, label, member=member.value
                )

        # Invocation syntax the export does not accept is never a bare value
        if spec.shape_allows(CallShape.BARE_VALUE) and not (
            spec.is_invocable() and self.content_starts(following)
        ):
            invocation = self.reference_make(binding, InvocationForm.BARE_VALUE, token, spec, label)
            invocation.position = self.position_classify(tokens, index)
            return invocation, index + 1

        self.reporter.malformed(self.misuse_describe(binding, spec), token)

    @staticmethod
    def misuse_describe(binding: Binding, spec: MacroSpec) -> str:
        """
        Message for a macro used in a shape it does not accept

        Example:
            macro 'styled' (styled: Styled component factory ...) cannot be
            used in this form; expected e.g. styled.div`display: flex;`
        """
        summary = f"{spec.name}: {spec.description}" if spec.description else spec.name
        message = f"macro '{binding.local_name}' ({summary}) cannot be used in this form"
        if spec.examples:
            message += f"; expected e.g. {' or '.join(spec.examples)}"
        return message

    def memberFactory_match(
        self,
        tokens: List[Token],
        content_index: int,
        binding: Binding,
        spec: MacroSpec,
        token: Token,
        label: Optional[str],
        member: Optional[str] = None,
        factory: Optional[ExpressionSpan] = None,
    ) -> Tuple[Invocation, int]:
        """Build a MEMBER_OR_FACTORY invocation whose content starts at content_index"""
        content = tokens[content_index]
        if content.kind is TokenKind.TEMPLATE:
            invocation = Invocation(
                binding=binding,
                form=InvocationForm.MEMBER_OR_FACTORY,
                location=token.location,
                start=token.start,
                end=content.end,
                spec=spec,
                content_form=InvocationForm.TAGGED_TEMPLATE,
                template=content.template,
                member=member,
                factory=factory,
                label=label,
            )
            return invocation, content_index + 1

        close = self.closer_find(tokens, content_index)
        arguments = self.arguments_split(tokens, content_index, close)
        invocation = Invocation(
            binding=binding,
            form=InvocationForm.MEMBER_OR_FACTORY,
            location=token.location,
            start=token.start,
            end=tokens[close].end,
            spec=spec,
            content_form=self.callForm_classify(arguments),
            arguments=arguments,
            member=member,
            factory=factory,
            label=label,
        )
        return invocation, close + 1

    @staticmethod
    def reference_make(
        binding: Binding,
        form: InvocationForm,
        token: Token,
        spec: Optional[MacroSpec],
        label: Optional[str],
    ) -> Invocation:
        """Invocation covering just the identifier (bare value or pass-through)"""
        return Invocation(
            binding=binding,
            form=form,
            location=token.location,
            start=token.start,
            end=token.end,
            spec=spec,
            label=label,
        )

    @staticmethod
    def token_peek(tokens: List[Token], index: int) -> Optional[Token]:
        if 0 <= index < len(tokens):
            return tokens[index]
        return None

    @staticmethod
    def content_starts(token: Optional[Token]) -> bool:
        """True if token opens invocation content: a template or a call"""
        if token is None:
            return False
        return token.kind is TokenKind.TEMPLATE or token.value == '('

    def reference_isCandidate(self, tokens: List[Token], index: int) -> bool:
        """
        Whether the identifier at index refers to the binding

        Property names (``obj.css``), object keys (``{ css: 1 }``), method
        names (``{ css() {} }``, ``get css() {}``), exported names
        (``export { x as css }``) and re-exports (``export { css } from 'x'``)
        share the spelling but not the binding.
        """
        previous = self.token_peek(tokens, index - 1)
        following = self.token_peek(tokens, index + 1)
        if previous is None:
            return True
        if previous.value in ('.', '?.'):
            return False
        if previous.value in ('{', ',') and following is not None and following.value == ':':
            return False
        if following is not None and following.value == '(' and previous.value in METHOD_PREFIXES:
            close = brace_findMatching(tokens, index + 1)
            body = self.token_peek(tokens, close + 1) if close is not None else None
            if body is not None and body.value == '{':
                return False

        opener = self.exportList_find(tokens, index)
        if opener is not None:
            if previous.value == 'as':
                return False
            close = brace_findMatching(tokens, opener)
            after = self.token_peek(tokens, close + 1) if close is not None else None
            if after is not None and after.value == 'from':
                return False
        return True

    @staticmethod
    def opener_find(tokens: List[Token], index: int) -> Optional[int]:
        """Index of the innermost unclosed bracket before index, if any"""
        depth = 0
        for position in range(index - 1, -1, -1):
            token = tokens[position]
            if token.kind is not TokenKind.PUNCTUATOR:
                continue
            if token.value in CLOSERS:
                depth += 1
            elif token.value in OPENERS:
                if depth == 0:
                    return position
                depth -= 1
        return None

    def exportList_find(self, tokens: List[Token], index: int) -> Optional[int]:
        """Index of the '{' of an ``export { ... }`` list enclosing index, if any"""
        opener = self.opener_find(tokens, index)
        if opener is None or tokens[opener].value != '{':
            return None
        keyword = self.token_peek(tokens, opener - 1)
        if keyword is not None and keyword.kind is TokenKind.KEYWORD and keyword.value == 'export':
            return opener
        return None

    def position_classify(self, tokens: List[Token], index: int) -> ReferencePosition:
        """
        Syntactic position of a bare reference

        ``{ css }`` and ``export { css }`` name a key or an export with the
        identifier itself; anything else is a plain expression.
        """
        previous = self.token_peek(tokens, index - 1)
        following = self.token_peek(tokens, index + 1)
        if previous is None or following is None:
            return ReferencePosition.EXPRESSION
        if previous.value not in ('{', ',') or following.value not in (',', '}'):
            return ReferencePosition.EXPRESSION
        if self.exportList_find(tokens, index) is not None:
            return ReferencePosition.EXPORT_SPECIFIER
        opener = self.opener_find(tokens, index)
        if opener is not None and tokens[opener].value == '{':
            return ReferencePosition.SHORTHAND_PROPERTY
        return ReferencePosition.EXPRESSION

    def closer_find(self, tokens: List[Token], index: int) -> int:
        close = brace_findMatching(tokens, index)
        if close is None:
            self.reporter.malformed(f"Unmatched '{tokens[index].value}'", tokens[index])
        return close

    def arguments_split(self, tokens: List[Token], open_index: int, close_index: int) -> List[ExpressionSpan]:
        """
        Split the tokens between a '(' and its ')' on top-level commas

        Returns:
            One ExpressionSpan per argument; a trailing comma adds nothing
        """
        arguments: List[ExpressionSpan] = []
        current: List[Token] = []
        depth = 0
        for token in tokens[open_index + 1:close_index]:
            if token.kind is TokenKind.PUNCTUATOR:
                if token.value in OPENERS:
                    depth += 1
                elif token.value in CLOSERS:
                    depth -= 1
                elif token.value == ',' and depth == 0:
                    if current:
                        arguments.append(ExpressionSpan(current, current[0].start, current[-1].end))
                    current = []
                    continue
            current.append(token)
        if current:
            arguments.append(ExpressionSpan(current, current[0].start, current[-1].end))
        return arguments

    @staticmethod
    def callForm_classify(arguments: List[ExpressionSpan]) -> InvocationForm:
        """
        No arguments or a single string/template argument is string-like;
        anything else is carried as opaque slots
        """
        if not arguments:
            return InvocationForm.CALL_STRING_LIKE
        if len(arguments) == 1 and len(arguments[0].tokens) == 1:
            if arguments[0].tokens[0].kind in (TokenKind.STRING, TokenKind.TEMPLATE):
                return InvocationForm.CALL_STRING_LIKE
        return InvocationForm.CALL_OBJECT

    def label_derive(self, tokens: List[Token], index: int) -> Optional[str]:
        """
        Name of the nearest enclosing declaration

        Recognizes ``const X = <use>``, ``X = <use>`` and ``{ key: <use> }``.
        """
        previous = self.token_peek(tokens, index - 1)
        before = self.token_peek(tokens, index - 2)
        if previous is None or before is None:
            return None
        if previous.kind is TokenKind.OPERATOR and previous.value == '=' and before.kind is TokenKind.IDENTIFIER:
            return before.value
        if previous.value == ':' and (before.is_word() or before.kind is TokenKind.STRING):
            opener = self.token_peek(tokens, index - 3)
            if opener is not None and opener.value in ('{', ','):
                return before.value.strip('\'"')
        return None
