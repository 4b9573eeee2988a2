"""
Code generator

Produces replacement source for compiled invocations and the single
runtime import of a module.

Output shapes:
    css`a${b}c`            -> _css([`a`, b, `c`], { label: "x" })
    styled.div`...`        -> _styled("div", [...], { label: "X" })
    styled(Button)({...})  -> _styled(Button, [{...}])
    flush                  -> _flush
    { flush }              -> { flush: _flush }
"""

import json
from typing import Callable, Dict, List, Optional

from ..config import AppSettings
from ..models.invocation import FragmentSequence, Invocation, LiteralFragment, ReferencePosition
from ..models.parser import ExpressionSpan, ImportDeclaration, ImportMechanism, ModuleSource


class CodeGenerator:
    """
    Emits replacement text for one module

    Runtime aliases are allocated on first use, never collide with an
    identifier spelled in the module, and are remembered so the runtime
    import lists exactly the exports that were used.

    Attributes:
        runtime_names: Runtime export -> local alias, in allocation order
    """

    def __init__(
        self,
        module: ModuleSource,
        settings: AppSettings,
        renderer: Callable[[ExpressionSpan], str],
    ) -> None:
        self.module = module
        self.settings = settings
        self.renderer = renderer
        self.runtime_names: Dict[str, str] = {}
        self.taken = set(module.identifiers)

    def runtimeName_get(self, export: str) -> str:
        """
        Local alias for a runtime export, allocating it if needed

        Example:
            css -> _css, or _css2 if the module already spells _css
        """
        if export in self.runtime_names:
            return self.runtime_names[export]
        base = f"{self.settings.runtime_alias_prefix}{export}"
        name = base
        counter = 2
        while name in self.taken:
            name = f"{base}{counter}"
            counter += 1
        self.taken.add(name)
        self.runtime_names[export] = name
        return name

    def bareValue_render(self, invocation: Invocation) -> str:
        """
        Replacement for a bare reference

        Example:
            flush              -> _flush
            { flush }          -> { flush: _flush }
            export { flush }   -> export { _flush as flush }
        """
        alias = self.runtimeName_get(invocation.spec.runtime_export)
        local = invocation.binding.local_name
        if invocation.position is ReferencePosition.SHORTHAND_PROPERTY:
            return f"{local}: {alias}"
        if invocation.position is ReferencePosition.EXPORT_SPECIFIER:
            return f"{alias} as {local}"
        return alias

    def invocation_render(self, invocation: Invocation, fragments: FragmentSequence) -> str:
        """
        Replacement call for a content-carrying invocation

        Args:
            invocation: Compiled invocation
            fragments: Its extracted fragment sequence

        Returns:
            Source text of the runtime call
        """
        callee = self.runtimeName_get(invocation.spec.runtime_export)
        arguments: List[str] = []
        if invocation.member is not None:
            arguments.append(json.dumps(invocation.member))
        elif invocation.factory is not None:
            arguments.append(self.renderer(invocation.factory).strip())
        arguments.append(self.fragments_render(fragments))
        metadata = self.metadata_render(invocation)
        if metadata:
            arguments.append(metadata)
        return f"{callee}({', '.join(arguments)})"

    @staticmethod
    def fragments_render(fragments: FragmentSequence) -> str:
        """Array literal of template-literal strings and slot expressions"""
        items = []
        for item in fragments:
            if isinstance(item, LiteralFragment):
                items.append(f"`{item.text}`")
            else:
                items.append(item.expression)
        return f"[{', '.join(items)}]"

    def metadata_render(self, invocation: Invocation) -> Optional[str]:
        """
        Development metadata object, or None when nothing is configured

        Example:
            { label: "SomeComponent", source: "app.js:3:23" }
        """
        entries = []
        if self.settings.emit_labels and invocation.label:
            entries.append(f"label: {json.dumps(invocation.label)}")
        if self.settings.emit_source_locations:
            source = f"{self.module.filename}:{invocation.location}"
            entries.append(f"source: {json.dumps(source)}")
        if not entries:
            return None
        return f"{{ {', '.join(entries)} }}"

    def runtimeImport_render(self) -> Optional[str]:
        """The runtime import statement, or None if nothing was expanded"""
        if not self.runtime_names:
            return None
        specifiers = ', '.join(
            export if export == alias else f"{export} as {alias}"
            for export, alias in self.runtime_names.items()
        )
        return f"import {{ {specifiers} }} from '{self.settings.runtime_module}';"

    @staticmethod
    def residualImport_render(declaration: ImportDeclaration, keep: List[str]) -> Optional[str]:
        """
        Re-emit a macro import with only the specifiers that pass through

        Args:
            declaration: Original module-style macro import
            keep: Local names of its unknown specifiers

        Returns:
            Import statement text, or None when nothing is kept
        """
        if declaration.mechanism is not ImportMechanism.MODULE:
            return None
        specifiers = [s for s in declaration.specifiers if s.local in keep]
        if not specifiers:
            return None
        named = []
        for specifier in specifiers:
            if specifier.imported == '*':
                return f"import * as {specifier.local} from '{declaration.source}';"
            if specifier.imported == specifier.local:
                named.append(specifier.local)
            else:
                named.append(f"{specifier.imported} as {specifier.local}")
        return f"import {{ {', '.join(named)} }} from '{declaration.source}';"
