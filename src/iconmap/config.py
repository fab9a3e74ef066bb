"""
Environment-driven configuration.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from .overrides import JsonOverrideStore
from .sources import (
    DEFAULT_FONT_FILES,
    BungieManifestSource,
    DefinitionSource,
    FontFileSource,
    LocalDefinitionSource,
)

logger = logging.getLogger("iconmap")


class ConfigError(Exception):
    """Raised when the environment does not describe a usable setup."""
    pass


class IconmapConfig(BaseModel):
    """Settings for an iconmap session.

    Attributes:
        data_dir: Root for the overrides file and the manifest cache
        font_paths: Icon fonts in catalog priority order
        primary_locale: Locale whose text carries placeholders
        secondary_locale: Locale whose text carries rendered glyphs
        bungie_api_key: Enables the Bungie.net manifest source when set
        definitions_dir: Directory of local locale documents, used when no
            API key is configured
    """

    data_dir: Path = Field(default_factory=lambda: Path(".").resolve())
    font_paths: list[Path] = Field(default_factory=list)
    primary_locale: str = "en"
    secondary_locale: str = "zh-cht"
    bungie_api_key: str | None = None
    definitions_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "IconmapConfig":
        """Build settings from ICONMAP_* and BUNGIE_API_KEY variables."""
        env = os.environ if environ is None else environ

        data_dir = Path(env.get("ICONMAP_DATA_DIR", "")).resolve()

        font_paths: list[Path] = []
        if env.get("ICONMAP_FONTS"):
            font_paths = [Path(p) for p in env["ICONMAP_FONTS"].split(os.pathsep) if p]
        elif env.get("ICONMAP_FONT_DIR"):
            font_dir = Path(env["ICONMAP_FONT_DIR"])
            font_paths = [font_dir / name for name in DEFAULT_FONT_FILES]

        definitions_dir = env.get("ICONMAP_DEFINITIONS_DIR")

        return cls(
            data_dir=data_dir,
            font_paths=font_paths,
            primary_locale=env.get("ICONMAP_PRIMARY_LOCALE", "en"),
            secondary_locale=env.get("ICONMAP_SECONDARY_LOCALE", "zh-cht"),
            bungie_api_key=env.get("BUNGIE_API_KEY") or None,
            definitions_dir=Path(definitions_dir) if definitions_dir else None,
        )

    @property
    def overrides_path(self) -> Path:
        return self.data_dir / "overrides.json"

    @property
    def cache_dir(self) -> Path:
        return self.data_dir / "manifest_cache"

    def font_sources(self) -> list[FontFileSource]:
        return [FontFileSource(path) for path in self.font_paths]

    def definition_source(self) -> DefinitionSource:
        """Return the Bungie.net source if an API key is set, else the local one.

        Raises:
            ConfigError: If neither an API key nor a definitions directory is set
        """
        if self.bungie_api_key:
            return BungieManifestSource(self.bungie_api_key, cache_dir=self.cache_dir)
        if self.definitions_dir:
            return LocalDefinitionSource(self.definitions_dir)
        raise ConfigError(
            "No definition source configured. Set BUNGIE_API_KEY or ICONMAP_DEFINITIONS_DIR."
        )

    def override_store(self) -> JsonOverrideStore:
        return JsonOverrideStore(self.overrides_path)
