"""
Glyph catalog merged from an ordered list of icon fonts.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping, Union

from .models import GlyphRecord, RawGlyph

logger = logging.getLogger("iconmap")

GlyphEntry = Union[RawGlyph, Mapping[str, object], tuple[str, int]]


def _coerce_entry(entry: GlyphEntry) -> tuple[str, int]:
    """Return (name, codepoint) for any supported glyph entry shape."""
    if isinstance(entry, RawGlyph):
        return entry.name, entry.codepoint
    if isinstance(entry, Mapping):
        return str(entry["name"]), int(entry["codepoint"])  # type: ignore[arg-type]
    name, codepoint = entry
    return name, int(codepoint)


class GlyphCatalog:
    """Name-keyed glyph catalog where the first font to supply a name wins.

    Sources are merged in the order they are given, so the caller decides
    font priority. A glyph whose name already exists in the catalog is
    discarded, never overwritten. The catalog is read-only once built.

    Usage:
        catalog = GlyphCatalog.build([
            ("Destiny_Keys", keys_glyphs),
            ("Destiny_Symbols_PC", pc_glyphs),
        ])
        record = catalog.get("arc")
    """

    def __init__(self, records: Iterable[GlyphRecord] = ()) -> None:
        self._records: dict[str, GlyphRecord] = {}
        for record in records:
            self._records.setdefault(record.name, record)

    @classmethod
    def build(
        cls, sources: Iterable[tuple[str, Iterable[GlyphEntry]]]
    ) -> "GlyphCatalog":
        """Merge glyph entries from ordered (source_id, glyphs) pairs.

        Args:
            sources: Font sources in priority order, highest first

        Returns:
            The deduplicated catalog
        """
        catalog = cls()
        for source_id, glyphs in sources:
            added = 0
            discarded = 0
            for entry in glyphs:
                name, codepoint = _coerce_entry(entry)
                if name in catalog._records:
                    discarded += 1
                    continue
                catalog._records[name] = GlyphRecord(
                    name=name, codepoint=codepoint, source_id=source_id
                )
                added += 1
            logger.debug(
                f"Catalogued {added} glyphs from {source_id} ({discarded} duplicates discarded)"
            )
        return catalog

    def get(self, name: str) -> GlyphRecord | None:
        return self._records.get(name)

    @property
    def records(self) -> tuple[GlyphRecord, ...]:
        """All records in priority order (read-only view)."""
        return tuple(self._records.values())

    def __iter__(self) -> Iterator[GlyphRecord]:
        return iter(tuple(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __repr__(self) -> str:
        return f"GlyphCatalog({len(self._records)} glyphs)"
