"""
Pytest configuration and fixtures for iconmap tests.
"""

import sys
from pathlib import Path
import pytest

# Add src directory to Python path to allow importing iconmap
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from iconmap.definitions import DefinitionIndex


BOSS_GLYPH = chr(0xE010)
ARC_GLYPH = chr(0xE099)
SOLAR_GLYPH = chr(0xE0A1)


def objective(entry_hash: int, text: str | None) -> dict:
    """Build a raw DestinyObjectiveDefinition-shaped entry."""
    entry = {"hash": entry_hash, "index": 0, "redacted": False}
    if text is not None:
        entry["progressDescription"] = text
    return entry


def document(*entries: dict) -> dict:
    """Key raw entries by their hash, as the manifest documents do."""
    return {str(entry["hash"]): entry for entry in entries}


@pytest.fixture
def primary_document() -> dict:
    return document(
        objective(42, "Defeat [Boss]"),
        objective(43, "Arc kills [Arc]"),
        objective(44, "Visit the Tower"),
        objective(45, "Defeat [Boss] in a Strike"),
        objective(46, "Solar kills [Solar]"),
    )


@pytest.fixture
def secondary_document() -> dict:
    return document(
        objective(42, f"击败 {BOSS_GLYPH}"),
        objective(43, f"{ARC_GLYPH} 击杀"),
        objective(44, "前往高塔"),
        objective(45, f"在打击中击败 {BOSS_GLYPH}"),
        objective(46, "烈日击杀"),
    )


@pytest.fixture
def primary_index(primary_document) -> DefinitionIndex:
    return DefinitionIndex.index_by(primary_document, locale="en")


@pytest.fixture
def secondary_index(secondary_document) -> DefinitionIndex:
    return DefinitionIndex.index_by(secondary_document, locale="zh-cht")
