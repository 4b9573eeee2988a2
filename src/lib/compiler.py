"""
Compiler for style macro modules

Drives one module through the macro pass and applies the resulting edits
to its source text.
"""

from typing import List, Optional, Tuple

from ..config import AppSettings, appsettings
from ..models.invocation import CompiledOutput, Invocation, InvocationForm, TransformResult
from ..models.parser import ExpressionSpan, ImportDeclaration, ImportMechanism, ModuleSource
from .diagnostics import DiagnosticsReporter
from .extractor import StyleExtractor
from .generator import CodeGenerator
from .log import LOG
from .matcher import CallSiteMatcher
from .parser import Parser
from .registry import MacroRegistry, registry_fromSettings
from .resolver import BindingResolver


Edit = Tuple[int, int, str]


class Compiler:
    """
    Compiles the macro uses of one parsed module

    Responsibilities:
    - Resolve macro bindings from the module's imports
    - Compile every matched invocation in source order
    - Expand macro uses inside interpolations that are not spliced
    - Replace macro imports with the single runtime import
    """

    def __init__(
        self,
        module: ModuleSource,
        registry: Optional[MacroRegistry] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        """
        Initialize compiler

        Args:
            module: Parsed module
            registry: Macro registry (default: loaded from settings' manifest)
            settings: Settings (default: the appsettings singleton)
        """
        self.module = module
        self.settings = settings or appsettings
        self.registry = registry or registry_fromSettings(self.settings)
        self.reporter = DiagnosticsReporter(module.source, module.filename)

        self.bindings = BindingResolver(self.registry, self.settings).bindings_resolve(module)
        self.matcher = CallSiteMatcher(module, self.bindings, self.registry, self.reporter)
        self.extractor = StyleExtractor(self.matcher, self.expression_render)
        self.generator = CodeGenerator(module, self.settings, self.expression_render)

        self.outputs: List[CompiledOutput] = []

    def compile(self) -> TransformResult:
        """
        Compile the module

        Returns:
            TransformResult with the rewritten source

        Raises:
            MacroError: On the first fatal diagnostic; no partial output
        """
        source = self.module.source
        if not self.bindings:
            LOG(f"{self.module.filename}: no macro imports", level=2)
            return TransformResult(code=source, outputs=[], bindings={}, runtime_imports={}, changed=False)

        edits: List[Edit] = []
        for invocation in self.matcher.invocations_match():
            output = self.invocation_compile(invocation)
            if not output.is_passthrough:
                edits.append((output.start, output.end, output.code))
        edits.extend(self.imports_rewrite())

        code = self.edits_apply(source, edits)
        self.outputs.sort(key=lambda output: output.start)
        materialized = sum(1 for output in self.outputs if not output.is_passthrough)
        LOG(
            f"{self.module.filename}: {materialized} invocation(s) expanded, "
            f"{len(self.outputs) - materialized} passed through",
            level=2,
        )

        return TransformResult(
            code=code,
            outputs=self.outputs,
            bindings=self.bindings,
            runtime_imports=dict(self.generator.runtime_names),
            changed=code != source,
        )

    def invocation_compile(self, invocation: Invocation) -> CompiledOutput:
        """
        Compile a single matched invocation

        Pass-through uses keep their source text; bare values become the
        runtime alias; content forms are extracted and rendered.

        Args:
            invocation: Matched invocation

        Returns:
            The materialized CompiledOutput (also recorded in self.outputs)
        """
        if invocation.form is InvocationForm.PASS_THROUGH:
            code = self.module.source[invocation.start:invocation.end]
            output = CompiledOutput(invocation=invocation, code=code)
        elif invocation.form is InvocationForm.BARE_VALUE:
            name = self.generator.runtimeName_get(invocation.spec.runtime_export)
            code = self.generator.bareValue_render(invocation)
            output = CompiledOutput(invocation=invocation, code=code, runtime_name=name)
        else:
            # Outer alias first so the runtime import lists it before nested ones
            name = self.generator.runtimeName_get(invocation.spec.runtime_export)
            fragments = self.extractor.fragments_extract(invocation)
            code = self.generator.invocation_render(invocation, fragments)
            output = CompiledOutput(invocation=invocation, code=code, fragments=fragments, runtime_name=name)

        self.outputs.append(output)
        LOG(
            f"{self.module.filename}:{invocation.location} "
            f"{invocation.form.value} '{invocation.binding.local_name}' -> {output.code}",
            level=3,
        )
        return output

    def expression_render(self, span: ExpressionSpan) -> str:
        """
        Source text of an expression with its macro uses compiled in place

        Args:
            span: Interpolation body, call argument or factory argument

        Returns:
            Rewritten expression text
        """
        edits: List[Edit] = []
        for invocation in self.matcher.tokens_scan(span.tokens):
            output = self.invocation_compile(invocation)
            if not output.is_passthrough:
                edits.append((output.start, output.end, output.code))
        text = self.module.source[span.start:span.end]
        return self.edits_apply(text, edits, offset=span.start)

    def imports_rewrite(self) -> List[Edit]:
        """
        Edits replacing module-style macro imports

        The runtime import takes the place of the first macro import that
        loses a specifier. Unknown specifiers stay in a re-emitted import;
        declarations with nothing recognized and require() declarations
        are left as written.
        """
        runtime_import = self.generator.runtimeImport_render()
        if runtime_import is None:
            return []

        edits: List[Edit] = []
        placed = False
        for declaration in self.module.imports:
            if declaration.mechanism is not ImportMechanism.MODULE:
                continue
            if not self.settings.path_isMacro(declaration.source):
                continue

            keep = [
                specifier.local for specifier in declaration.specifiers
                if self.bindings[specifier.local].is_unknown
            ]
            if len(keep) == len(declaration.specifiers):
                continue

            parts = []
            if not placed:
                parts.append(runtime_import)
                placed = True
            residual = self.generator.residualImport_render(declaration, keep)
            if residual:
                parts.append(residual)

            if parts:
                separator = '\n' + self.indent_get(declaration.start)
                edits.append((declaration.start, declaration.end, separator.join(parts)))
            else:
                edits.append(self.declaration_remove(declaration))

        if not placed:
            edits.append((0, 0, runtime_import + '\n'))
        return edits

    def indent_get(self, position: int) -> str:
        """Leading whitespace of the line containing position"""
        source = self.module.source
        line_start = source.rfind('\n', 0, position) + 1
        prefix = source[line_start:position]
        return prefix if not prefix.strip() else ''

    def declaration_remove(self, declaration: ImportDeclaration) -> Edit:
        """Delete a declaration, and its line too when nothing else is on it"""
        source = self.module.source
        start, end = declaration.start, declaration.end
        line_start = source.rfind('\n', 0, start) + 1
        line_end = source.find('\n', end)
        if line_end == -1:
            line_end = len(source)
        if source[line_start:start].strip() or source[end:line_end].strip():
            return (start, end, '')
        if line_end < len(source):
            line_end += 1
        return (line_start, line_end, '')

    @staticmethod
    def edits_apply(text: str, edits: List[Edit], offset: int = 0) -> str:
        """
        Apply non-overlapping (start, end, replacement) edits

        Args:
            text: Text to edit
            edits: Edits in source offsets
            offset: Source offset of text[0]
        """
        parts = []
        cursor = 0
        for start, end, replacement in sorted(edits, key=lambda edit: (edit[0], edit[1])):
            parts.append(text[cursor:start - offset])
            parts.append(replacement)
            cursor = end - offset
        parts.append(text[cursor:])
        return ''.join(parts)


def transform(
    source: str,
    filename: str = "<module>",
    settings: Optional[AppSettings] = None,
    registry: Optional[MacroRegistry] = None,
) -> TransformResult:
    """
    Run the macro pass over one module's source text

    Args:
        source: Module source
        filename: Name used in diagnostics and source metadata
        settings: Settings (default: the appsettings singleton)
        registry: Macro registry (default: loaded from settings)

    Returns:
        TransformResult

    Example:
        >>> result = transform("import { css } from './macro'\\nconst a = css`color: red;`")
        >>> print(result.code)
        import { css as _css } from 'emotion';
        const a = _css([`color: red;`], { label: "a" })
    """
    module = Parser(source, filename).parse()
    return Compiler(module, registry=registry, settings=settings).compile()
