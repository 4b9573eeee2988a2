"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use STYLEMACRO_ prefix (e.g., STYLEMACRO_RUNTIME_MODULE=emotion).

Settings can also be loaded from a .env file in the project root.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Manifest shipped with the package (see MacroRegistry.manifest_load)
DEFAULT_MANIFEST = Path(__file__).parent / "macros.yaml"

SOURCE_EXTENSIONS = ('.js', '.mjs', '.cjs', '.jsx', '.ts', '.tsx')


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use STYLEMACRO_ prefix.

    Examples:
        STYLEMACRO_RUNTIME_MODULE=react-emotion
        STYLEMACRO_EMIT_SOURCE_LOCATIONS=true
        STYLEMACRO_MACRO_SUFFIXES='["/macro", "/css.macro"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="STYLEMACRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Macro module recognition
    macro_suffixes: List[str] = Field(
        default_factory=lambda: ["/macro"],
        description="Import paths ending with one of these suffixes are the macro module",
    )

    macro_manifest: Optional[str] = Field(
        default=None,
        description="Path to an alternative YAML manifest of macro exports",
    )

    # Code generation
    runtime_module: str = Field(
        default="emotion",
        description="Module the generated runtime import is taken from",
    )

    runtime_alias_prefix: str = Field(
        default="_",
        description="Prefix for local aliases of runtime exports (css -> _css)",
    )

    emit_labels: bool = Field(
        default=True,
        description="Emit a label derived from the enclosing declaration",
    )

    emit_source_locations: bool = Field(
        default=False,
        description="Emit file:line:column of each invocation",
    )

    # Fragment inspection
    placeholder_prefix: str = Field(
        default="\x00SLOT_",
        description="Prefix for slot placeholders in joined literal text (uses null byte to avoid collisions)",
    )

    placeholder_suffix: str = Field(
        default="\x00",
        description="Suffix for slot placeholders in joined literal text",
    )

    def manifestPath_get(self) -> Path:
        """Path of the macro manifest in effect"""
        if self.macro_manifest:
            return Path(self.macro_manifest)
        return DEFAULT_MANIFEST

    def path_isMacro(self, path: str) -> bool:
        """
        Check whether an import source names the macro module.

        Matching is by suffix so that "./styled/macro" and
        "../../babel-plugin-emotion/src/macro" are the same logical module.

        Example:
            >>> AppSettings().path_isMacro('./styled/macro')
            True
            >>> AppSettings().path_isMacro('emotion')
            False
        """
        for extension in SOURCE_EXTENSIONS:
            if path.endswith(extension):
                path = path[: -len(extension)]
                break
        for suffix in self.macro_suffixes:
            if path.endswith(suffix) or path == suffix.lstrip('/'):
                return True
        return False

    def placeHolder_make(self, index: int) -> str:
        """
        Generate a placeholder string for the slot at given index.

        Args:
            index: Zero-based slot index

        Returns:
            Placeholder string (e.g., "\\x00SLOT_0\\x00")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make(0)
            '\\x00SLOT_0\\x00'
        """
        return f"{self.placeholder_prefix}{index}{self.placeholder_suffix}"

    def slotIndex_extract(self, placeholder: str) -> int | None:
        """
        Extract slot index from a placeholder string.

        Args:
            placeholder: Placeholder string to parse

        Returns:
            Slot index if valid placeholder, None otherwise
        """
        if not placeholder.startswith(self.placeholder_prefix):
            return None
        if not placeholder.endswith(self.placeholder_suffix):
            return None

        content = placeholder[len(self.placeholder_prefix) : -len(self.placeholder_suffix)]

        try:
            return int(content)
        except ValueError:
            return None


# Singleton instance - import this in your code
appsettings = AppSettings()
