"""
Placeholder extraction from localized objective text.

Primary-locale text refers to icons either by a bracketed token such as
``[Arc]`` or by a raw private-use codepoint. Secondary-locale text is
expected to carry the rendered codepoint itself.
"""

from __future__ import annotations

import re

PRIVATE_USE_START = 0xE000
PRIVATE_USE_END = 0xF8FF

# Bracketed token without inner brackets, or a single private-use codepoint
PLACEHOLDER_PATTERN = re.compile(r"(\[[^\]]+\]|[\uE000-\uF8FF])")

GLYPH_PATTERN = re.compile(r"([\uE000-\uF8FF])")


def is_private_use(codepoint: int) -> bool:
    return PRIVATE_USE_START <= codepoint <= PRIVATE_USE_END


def extract_placeholder(text: str | None) -> str | None:
    """Return the first placeholder in ``text``, or None.

    Only the first match is returned even when the text carries several
    placeholders.

    Example:
        >>> extract_placeholder("Defeat [Boss] with [Arc]")
        '[Boss]'
    """
    if not text:
        return None
    match = PLACEHOLDER_PATTERN.search(text)
    return match.group(0) if match else None


def extract_glyph(text: str | None) -> str | None:
    """Return the first private-use character in ``text``, or None."""
    if not text:
        return None
    match = GLYPH_PATTERN.search(text)
    return match.group(0) if match else None
