"""
Concrete font and definition sources.

Font sources yield raw glyph entries for the catalog; definition sources
yield parsed locale documents for the definition indexes.
"""

from .base import (
    DefinitionSource,
    DefinitionSourceError,
    FontSource,
    FontSourceError,
)
from .bungie import BungieManifestSource
from .fonts import DEFAULT_FONT_FILES, FontFileSource
from .local import LocalDefinitionSource

__all__ = [
    "FontSource",
    "FontSourceError",
    "DefinitionSource",
    "DefinitionSourceError",
    "FontFileSource",
    "DEFAULT_FONT_FILES",
    "BungieManifestSource",
    "LocalDefinitionSource",
]
