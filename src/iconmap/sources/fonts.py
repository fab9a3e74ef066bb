"""
Font file source backed by fontTools.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fontTools.ttLib import TTFont, TTLibError

from ..models import RawGlyph
from .base import FontSource, FontSourceError

logger = logging.getLogger("iconmap")

# Destiny icon fonts in catalog priority order
DEFAULT_FONT_FILES = [
    "Destiny_Keys.otf",
    "Destiny_Symbols_360.ttf",
    "Destiny_Symbols_PC.otf",
    "Destiny_Symbols_PS4.otf",
    "Destiny_Symbols_Stadia.otf",
    "Destiny_Symbols_Steam.otf",
    "Destiny_Symbols_Xbox_ONE.otf",
]


class FontFileSource(FontSource):
    """
    Reads glyph names and codepoints from an OpenType or TrueType file.

    Glyphs are returned in the font's glyph order. Each glyph is paired
    with the lowest codepoint the font's best cmap maps to it; glyphs with
    no codepoint (``.notdef``, ligature components) are skipped.
    """

    def __init__(self, path: Path | str, source_id: str | None = None) -> None:
        """
        Initialize the source.

        Args:
            path: Path to the font file
            source_id: Optional identifier. Defaults to the file name without
                extension, e.g. "Destiny_Symbols_PC".
        """
        self.path = Path(path)
        self._source_id = source_id or self.path.stem

    @property
    def source_id(self) -> str:
        return self._source_id

    def load_glyphs(self) -> list[RawGlyph]:
        logger.info(f"Loading font {self.path}")
        try:
            font = TTFont(self.path, lazy=True)
        except FileNotFoundError:
            raise FontSourceError(f"Font file not found: {self.path}") from None
        except (TTLibError, OSError) as e:
            raise FontSourceError(f"Failed to read font {self.path}: {e}") from e

        try:
            cmap = font.getBestCmap() or {}
            codepoints: dict[str, int] = {}
            for codepoint, glyph_name in sorted(cmap.items()):
                codepoints.setdefault(glyph_name, codepoint)

            glyphs = [
                RawGlyph(name=name, codepoint=codepoints[name])
                for name in font.getGlyphOrder()
                if name in codepoints
            ]
        except Exception as e:
            # lazy tables are only parsed here, so malformed fonts fail late
            raise FontSourceError(f"Failed to read glyphs from {self.path}: {e}") from e
        finally:
            font.close()

        logger.debug(f"{self.source_id}: {len(glyphs)} mapped glyphs")
        return glyphs

    def __repr__(self) -> str:
        return f"FontFileSource({str(self.path)!r})"
