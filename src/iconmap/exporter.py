"""
Export of the resolved icon table.

Both output forms are rendered from the same filtered row list: a C#
literal table for embedding in client code, and a JSON array for tooling.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

from .models import ExportRow, ResolvedIcon


@dataclass(frozen=True)
class ExportTables:
    """Rows plus both of their rendered forms."""

    rows: tuple[ExportRow, ...]
    csharp: str
    json: str


def export_rows(icons: Iterable[ResolvedIcon]) -> list[ExportRow]:
    """Project icons to export rows, dropping those without a codepoint."""
    rows: list[ExportRow] = []
    for icon in icons:
        unicode = icon.effective_codepoint
        if unicode is None:
            continue
        rows.append(
            ExportRow(
                substring=icon.substring,
                unicode=unicode,
                objective_hash=icon.objective_hash,
            )
        )
    return rows


def _csharp_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_csharp(rows: Iterable[ExportRow]) -> str:
    """Render rows as a C# array of (substring, glyph, hash) tuples."""
    body = ",\n".join(
        f"({_csharp_string(row.substring)}, {_csharp_string(row.char)}, {row.objective_hash}L)"
        for row in rows
    )
    return f"var icons = new []\n  {{\n  {body}\n  }};"


def render_json(rows: Iterable[ExportRow]) -> str:
    """Render rows as a JSON array of objects."""
    payload = [
        {
            "substring": row.substring,
            "unicode": row.char,
            "objectiveHash": row.objective_hash,
        }
        for row in rows
    ]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def export_tables(icons: Iterable[ResolvedIcon]) -> ExportTables:
    """Filter icons once and render both export forms from the result."""
    rows = tuple(export_rows(icons))
    return ExportTables(rows=rows, csharp=render_csharp(rows), json=render_json(rows))
