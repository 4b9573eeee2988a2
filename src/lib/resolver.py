"""
Binding resolver

Scans a module's import and require declarations and records a Binding for
every name imported from the macro module. Nothing is rewritten here.
"""

from typing import Dict

from ..config import AppSettings
from ..models.invocation import UNKNOWN_EXPORT, Binding
from ..models.parser import ImportDeclaration, ModuleSource
from .log import LOG
from .registry import MacroRegistry


class BindingResolver:
    """
    Determines which local identifiers refer to macro exports

    A binding is recorded for each imported name regardless of how many
    names a declaration imports or whether they are aliased. Names the
    registry does not know are recorded with UNKNOWN_EXPORT so their uses
    can pass through unchanged.
    """

    def __init__(self, registry: MacroRegistry, settings: AppSettings) -> None:
        self.registry = registry
        self.settings = settings

    def bindings_resolve(self, module: ModuleSource) -> Dict[str, Binding]:
        """
        Build the binding table for one module

        Args:
            module: Parsed module

        Returns:
            Bindings keyed by local name, in declaration order
        """
        bindings: Dict[str, Binding] = {}
        for declaration in module.imports:
            if not self.settings.path_isMacro(declaration.source):
                continue
            for binding in self.declaration_resolve(declaration):
                bindings[binding.local_name] = binding
                LOG(
                    f"Binding {binding.local_name} -> {binding.exported_name} "
                    f"({binding.import_mechanism.value} import of '{binding.macro_module_path}')",
                    level=2,
                )
        return bindings

    def declaration_resolve(self, declaration: ImportDeclaration) -> list:
        """Bindings created by a single macro-module declaration"""
        bindings = []
        for specifier in declaration.specifiers:
            imported = specifier.imported
            if imported == 'default':
                exported = self.registry.default_export
            elif self.registry.has(imported):
                exported = imported
            else:
                # Namespace imports and names the registry does not know
                exported = UNKNOWN_EXPORT
            bindings.append(Binding(
                local_name=specifier.local,
                exported_name=exported,
                imported_name=imported,
                macro_module_path=declaration.source,
                import_mechanism=declaration.mechanism,
                declaration=declaration,
            ))
        return bindings
