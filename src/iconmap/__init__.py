"""
Iconmap - resolves Destiny 2 icon placeholders to font glyphs and exports the mapping table.
"""

from .catalog import GlyphCatalog
from .definitions import DefinitionIndex
from .exporter import ExportTables, export_rows, export_tables
from .extractor import extract_glyph, extract_placeholder
from .models import *
from .overrides import JsonOverrideStore, OverrideMap, OverrideStore
from .resolver import find_collisions, resolve_icons
from .search import search_glyphs
from .session import ResolutionSession

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("iconmap")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "GlyphCatalog",
    "DefinitionIndex",
    "ExportTables",
    "export_rows",
    "export_tables",
    "extract_glyph",
    "extract_placeholder",
    "JsonOverrideStore",
    "OverrideMap",
    "OverrideStore",
    "find_collisions",
    "resolve_icons",
    "search_glyphs",
    "ResolutionSession",
]
