"""
Iconmap MCP Server
Resolves Destiny 2 icon placeholders to font glyphs and exports the mapping table.
"""

import logging
from typing import Annotated, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .config import ConfigError, IconmapConfig
from .models import GlyphRecord, ResolvedIcon
from .session import ResolutionSession, SessionError

logger = logging.getLogger("iconmap")

logging.basicConfig(
    level=logging.INFO,
    )

if not load_dotenv():
    logger.warning(".env file invalid or not found, reading settings from the environment only")

config = IconmapConfig.from_env()
logger.debug(f"Data path: {config.data_dir}")

mcp = FastMCP(
    name="iconmap"
)

_session: ResolutionSession | None = None


def get_session() -> ResolutionSession:
    """Return the process-wide session, creating it on first use."""
    global _session
    if _session is None:
        _session = ResolutionSession(
            font_sources=config.font_sources(),
            definition_source=config.definition_source(),
            override_store=config.override_store(),
            primary_locale=config.primary_locale,
            secondary_locale=config.secondary_locale,
        )
    return _session


# ----------------------------------------------------------------------
# Formatting helpers
# ----------------------------------------------------------------------

def _codepoint_label(codepoint: int | None) -> str:
    if codepoint is None:
        return "-"
    return f"{chr(codepoint)} U+{codepoint:04X}"


def _format_icon_table(icons: list[ResolvedIcon]) -> str:
    lines = ["substring | resolved | override | objective hash | progress description"]
    for icon in icons:
        lines.append(
            f"{icon.substring} | {_codepoint_label(icon.resolved_codepoint)} | "
            f"{_codepoint_label(icon.override_codepoint)} | {icon.objective_hash} | "
            f"{icon.source_text}"
        )
    return "\n".join(lines)


def _format_glyphs(records: list[GlyphRecord]) -> str:
    return "\n".join(
        f"  {record.char}  {record.name} (U+{record.codepoint:04X}, {record.source_id})"
        for record in records
    )


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------

@mcp.tool
async def reload_sources() -> str:
    """Load the icon fonts and both locale definition documents from scratch."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"

    status = await session.start()
    summary = (
        f"Loaded {status.glyph_count} glyphs, "
        f"{status.primary_count or 0} {status.primary_locale} and "
        f"{status.secondary_count or 0} {status.secondary_locale} definitions. "
        f"{status.icon_count} icons, {status.unresolved_count} unresolved."
    )
    if status.errors:
        summary += "\nErrors:\n" + "\n".join(f"  - {e}" for e in status.errors)
    return summary


@mcp.tool
def get_status() -> str:
    """Get what the current session has loaded, as JSON."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"
    return session.status().model_dump_json(indent=2)


@mcp.tool
def list_icons(
    unresolved_only: Annotated[bool, Field(description="Only list icons with no codepoint")] = False,
) -> str:
    """List resolved icons with their recovered and overridden glyphs."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"

    if not session.ready:
        return "Definitions not loaded. Run reload_sources first."

    icons = session.unresolved() if unresolved_only else session.icons
    if not icons:
        return "No icons to show."
    return _format_icon_table(icons)


@mcp.tool
def search_glyphs(
    query: Annotated[str, Field(description="Case-insensitive part of a glyph name")],
) -> str:
    """Search the glyph catalog by name."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"

    results = session.search(query)
    if not results:
        return f"No glyphs matching '{query}'."
    return f"{len(results)} glyphs matching '{query}':\n{_format_glyphs(results)}"


@mcp.tool
def set_override(
    substring: Annotated[str, Field(description="Placeholder substring, e.g. '[Boss]'")],
    glyph_name: Annotated[str | None, Field(description="Name of a catalog glyph to use")] = None,
    character: Annotated[str | None, Field(description="Literal override character, if no glyph name")] = None,
) -> str:
    """Override the glyph a placeholder resolves to."""
    try:
        session = get_session()
        icon = session.assign_override(substring, glyph_name=glyph_name, char=character)
    except (ConfigError, SessionError) as e:
        return f"Error: {e}"

    value = session.overrides.get(substring)
    message = f"Override for {substring}: {_codepoint_label(ord(value))}"
    if icon is None:
        message += " (placeholder not in the current icon set)"
    return message


@mcp.tool
def clear_override(
    substring: Annotated[str, Field(description="Placeholder substring to clear")],
) -> str:
    """Remove the override for a placeholder."""
    try:
        session = get_session()
        removed = session.clear_override(substring)
    except (ConfigError, SessionError) as e:
        return f"Error: {e}"

    if removed:
        return f"Override for {substring} cleared."
    return f"No override for {substring}."


@mcp.tool
def list_collisions() -> str:
    """List objectives whose placeholder was already claimed by an earlier objective."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"

    collisions = session.collisions()
    if not collisions:
        return "No placeholder collisions."
    lines = [f"{len(collisions)} objectives dropped:"]
    for collision in collisions:
        lines.append(
            f"  - {collision.substring}: {collision.dropped_hash} (kept {collision.kept_hash})"
        )
    return "\n".join(lines)


@mcp.tool
def export_table(
    format: Annotated[Literal["csharp", "json"], Field(description="Output format")] = "csharp",
) -> str:
    """Export the resolved icon table as a C# literal or a JSON document."""
    try:
        session = get_session()
    except ConfigError as e:
        return f"Error: {e}"

    tables = session.tables
    return tables.csharp if format == "csharp" else tables.json


logger.debug("All tools registered")

def main() -> None:
    """Main entry point for the iconmap MCP server."""
    mcp.run()

if __name__ == "__main__":
    main()
