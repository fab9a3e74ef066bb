"""
Cross-locale symbol resolution.

Pairs each placeholder found in the primary locale with the codepoint the
secondary locale renders for the same objective, then applies operator
overrides. Resolution never raises: a missing cross-reference only leaves
the icon unresolved.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from .definitions import DefinitionIndex
from .extractor import extract_glyph, extract_placeholder
from .models import PlaceholderCollision, PlaceholderMatch, ResolvedIcon

logger = logging.getLogger("iconmap")


def override_codepoint(value: str | None) -> int | None:
    """Codepoint of an override value, or None for an empty value.

    Overrides are stored as single characters; anything longer contributes
    its first character.
    """
    if not value:
        return None
    return ord(value[0])


def iter_placeholders(primary: DefinitionIndex) -> Iterator[PlaceholderMatch]:
    """Yield the first placeholder of every primary entry that has one."""
    for entry in primary:
        substring = extract_placeholder(entry.text)
        if substring is None:
            continue
        yield PlaceholderMatch(
            substring=substring,
            objective_hash=entry.hash,
            source_text=entry.text,
        )


def resolve_icons(
    primary: DefinitionIndex,
    secondary: DefinitionIndex,
    overrides: Mapping[str, str] | None = None,
) -> list[ResolvedIcon]:
    """Resolve every primary-locale placeholder to a codepoint.

    Entries are visited in primary enumeration order. The first entry to
    yield a given placeholder owns it; later entries with the same
    placeholder are discarded (see ``find_collisions``).

    Args:
        primary: Index of the locale whose text carries placeholders
        secondary: Index of the locale whose text carries rendered glyphs
        overrides: Operator overrides keyed by placeholder substring

    Returns:
        Resolved icons in primary enumeration order
    """
    overrides = overrides or {}
    accepted: dict[str, ResolvedIcon] = {}

    for match in iter_placeholders(primary):
        if match.substring in accepted:
            continue

        resolved = None
        reference = secondary.get(match.objective_hash)
        if reference is not None:
            glyph = extract_glyph(reference.text)
            if glyph is not None:
                resolved = ord(glyph)

        accepted[match.substring] = ResolvedIcon(
            substring=match.substring,
            objective_hash=match.objective_hash,
            resolved_codepoint=resolved,
            override_codepoint=override_codepoint(overrides.get(match.substring)),
            source_text=match.source_text,
        )

    icons = list(accepted.values())
    unresolved = sum(1 for icon in icons if not icon.is_resolved)
    logger.debug(f"Resolved {len(icons) - unresolved}/{len(icons)} icons")
    return icons


def find_collisions(primary: DefinitionIndex) -> list[PlaceholderCollision]:
    """List placeholder matches that lose their row to an earlier entry."""
    owners: dict[str, int] = {}
    collisions: list[PlaceholderCollision] = []

    for match in iter_placeholders(primary):
        owner = owners.setdefault(match.substring, match.objective_hash)
        if owner != match.objective_hash:
            collisions.append(
                PlaceholderCollision(
                    substring=match.substring,
                    kept_hash=owner,
                    dropped_hash=match.objective_hash,
                )
            )

    return collisions
