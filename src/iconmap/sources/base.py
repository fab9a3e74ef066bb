"""
Collaborator interfaces for glyph and definition loading.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..models import RawGlyph


class FontSourceError(Exception):
    """Error reading glyphs from a font."""
    pass


class DefinitionSourceError(Exception):
    """Error fetching or parsing a locale definition document."""
    pass


class FontSource(ABC):
    """A font whose glyphs feed the glyph catalog.

    Subclasses must implement:
    - source_id: Identifier used to tag catalogued glyphs.
    - load_glyphs(): Return the font's glyph entries.

    Priority between fonts is decided by the caller's ordering, not by
    the source.
    """

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Identifier for glyphs supplied by this font."""
        ...

    @abstractmethod
    def load_glyphs(self) -> list[RawGlyph]:
        """Read the font's glyph entries.

        Raises:
            FontSourceError: If the font cannot be read.
        """
        ...


class DefinitionSource(ABC):
    """A provider of parsed objective definition documents per locale."""

    @abstractmethod
    async def fetch(self, locale: str) -> dict[str, Any]:
        """Fetch the definition document for ``locale``.

        Returns:
            Mapping of content identifier to raw definition entry.

        Raises:
            DefinitionSourceError: If the document cannot be retrieved.
        """
        ...

    def reset(self) -> None:
        """Drop anything remembered from a previous load. No-op by default."""
        pass
