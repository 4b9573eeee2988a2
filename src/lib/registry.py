"""
Registry of macro exports

Maps export names of the macro module to MacroSpec records. The registry is
built from a YAML manifest and threaded explicitly into the resolver,
matcher and generator, so there is no global table of known macros.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.macros import CallShape, MacroSpec
from .diagnostics import MacroRegistryError


class MacroRegistry:
    """
    Registry of macro specifications

    Attributes:
        specs: Export name -> MacroSpec
        default_export: Export a default import (or whole-module require) binds to
    """

    def __init__(self, default_export: str = "styled") -> None:
        """Initialize an empty registry"""
        self.specs: Dict[str, MacroSpec] = {}
        self.default_export = default_export

    @classmethod
    def manifest_load(cls, path: Path) -> "MacroRegistry":
        """
        Build a registry from a YAML manifest

        Args:
            path: Manifest file (see config/macros.yaml)

        Returns:
            Populated MacroRegistry

        Raises:
            MacroRegistryError: If the file is missing, unparsable or invalid
        """
        if not path.exists():
            raise MacroRegistryError(f"Macro manifest not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                manifest: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise MacroRegistryError(f"Failed to parse macro manifest {path}: {e}")

        if not isinstance(manifest, dict) or not isinstance(manifest.get('macros'), dict):
            raise MacroRegistryError(f"Macro manifest {path} has no 'macros' table")

        registry = cls(default_export=manifest.get('default_export', 'styled'))
        for name, entry in manifest['macros'].items():
            registry.register(registry.spec_build(str(name), entry or {}))

        if registry.default_export not in registry.specs:
            raise MacroRegistryError(
                f"default_export '{registry.default_export}' is not a macro in {path}"
            )
        return registry

    @staticmethod
    def spec_build(name: str, entry: Dict[str, Any]) -> MacroSpec:
        """Turn one manifest entry into a MacroSpec"""
        try:
            shapes = {CallShape(shape) for shape in entry.get('shapes', [])}
        except ValueError as e:
            raise MacroRegistryError(f"Macro '{name}': {e}")
        if not shapes:
            raise MacroRegistryError(f"Macro '{name}' declares no call shapes")

        return MacroSpec(
            name=name,
            description=entry.get('description', ''),
            shapes=shapes,
            runtime_export=entry.get('runtime_export', name),
            requires_module_import=entry.get('requires_module_import', True),
            inline_nested=entry.get('inline_nested', False),
            examples=list(entry.get('examples', [])),
        )

    def register(self, spec: MacroSpec) -> None:
        """Register a macro specification"""
        self.specs[spec.name] = spec

    def get(self, name: str) -> Optional[MacroSpec]:
        """
        Get macro specification by export name

        Args:
            name: Export name to look up

        Returns:
            MacroSpec or None if the export is unknown
        """
        return self.specs.get(name)

    def has(self, name: str) -> bool:
        return name in self.specs

    def specs_listByShape(self, shape: CallShape) -> List[MacroSpec]:
        """Get all macros eligible for a call shape"""
        return [spec for spec in self.specs.values() if spec.shape_allows(shape)]

    def __repr__(self) -> str:
        return f"MacroRegistry(macros={sorted(self.specs)}, default='{self.default_export}')"


def registry_fromSettings(settings) -> MacroRegistry:
    """Load the registry from the manifest configured in settings"""
    return MacroRegistry.manifest_load(settings.manifestPath_get())
