"""
Hash-keyed index over one locale's objective definition document.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from .models import DefinitionEntry

logger = logging.getLogger("iconmap")

# Field names that carry the entry text, in lookup order
TEXT_FIELDS = ("progressDescription", "text")


def _entry_text(raw: Mapping[str, Any]) -> str:
    for field_name in TEXT_FIELDS:
        value = raw.get(field_name)
        if value is not None:
            return str(value)
    return ""


class DefinitionIndex:
    """Lookup of definition entries by hash for a single locale.

    The index is a pure re-keying of the parsed document; entry text is
    kept verbatim. Lookups for unknown hashes return None.

    Example:
        >>> index = DefinitionIndex.index_by({"42": {"hash": 42, "progressDescription": "Defeat [Boss]"}})
        >>> index.get(42).text
        'Defeat [Boss]'
        >>> index.get(7) is None
        True
    """

    def __init__(self, locale: str | None = None) -> None:
        self.locale = locale
        self._entries: dict[int, DefinitionEntry] = {}

    @classmethod
    def index_by(
        cls, document: Mapping[str, Any], locale: str | None = None
    ) -> "DefinitionIndex":
        """Build an index from a parsed definition document.

        Args:
            document: Mapping of content identifier to raw entry. Each raw
                entry needs a ``hash`` and usually a ``progressDescription``.
            locale: Optional locale code, for logging and display

        Returns:
            DefinitionIndex in the document's enumeration order
        """
        index = cls(locale=locale)
        skipped = 0
        for key, raw in document.items():
            if not isinstance(raw, Mapping) or raw.get("hash") is None:
                logger.debug(f"Skipping definition {key!r}: no hash")
                skipped += 1
                continue
            try:
                entry_hash = int(raw["hash"])
            except (TypeError, ValueError):
                logger.debug(f"Skipping definition {key!r}: invalid hash {raw['hash']!r}")
                skipped += 1
                continue
            index._entries[entry_hash] = DefinitionEntry(
                hash=entry_hash, text=_entry_text(raw)
            )

        if skipped:
            logger.info(f"Indexed {len(index)} definitions for {locale or 'locale'}, skipped {skipped}")
        return index

    def get(self, entry_hash: int) -> DefinitionEntry | None:
        return self._entries.get(entry_hash)

    def __iter__(self) -> Iterator[DefinitionEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_hash: object) -> bool:
        return entry_hash in self._entries
