"""
Glyph name search used when assigning overrides.
"""

from __future__ import annotations

from typing import Iterable

from .models import GlyphRecord


def search_glyphs(catalog: Iterable[GlyphRecord], query: str) -> list[GlyphRecord]:
    """Return catalog records whose name contains ``query``, ignoring case.

    An empty query matches nothing rather than the whole catalog.

    Args:
        catalog: Glyph records in catalog order
        query: Substring to look for in glyph names

    Returns:
        Matching records in catalog order
    """
    if not query:
        return []

    needle = query.lower()
    return [record for record in catalog if needle in record.name.lower()]
