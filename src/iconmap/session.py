"""
Resolution session: loads the inputs and keeps the derived tables current.

The session owns the glyph catalog, the two definition indexes and the
override map. Loading runs fonts and locale documents concurrently; the
resolved icon set is recomputed whenever an input changes and stays empty
until both locales are available.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

from pydantic import BaseModel, Field

from .catalog import GlyphCatalog
from .definitions import DefinitionIndex
from .exporter import ExportTables, export_tables
from .models import GlyphRecord, PlaceholderCollision, ResolvedIcon
from .overrides import OverrideMap, OverrideStore, OverrideStoreError
from .resolver import find_collisions, resolve_icons
from .search import search_glyphs
from .sources.base import (
    DefinitionSource,
    DefinitionSourceError,
    FontSource,
    FontSourceError,
)

logger = logging.getLogger("iconmap")


class SessionError(Exception):
    """Raised for invalid operator actions on a session."""
    pass


class SessionStatus(BaseModel):
    """Snapshot of what a session has loaded so far."""

    generation: int = Field(description="Number of times the session was started")
    loading: bool = Field(description="Whether a load is in flight")
    glyph_count: int = Field(description="Glyphs in the catalog")
    primary_locale: str
    secondary_locale: str
    primary_count: int | None = Field(description="Primary definitions, None until loaded")
    secondary_count: int | None = Field(description="Secondary definitions, None until loaded")
    icon_count: int = Field(description="Resolved icon rows")
    unresolved_count: int = Field(description="Rows with no effective codepoint")
    override_count: int = Field(description="Operator overrides")
    errors: list[str] = Field(default_factory=list, description="Load errors from the last start")


class ResolutionSession:
    """Session-wide state for icon resolution.

    A call to ``start()`` rebuilds the catalog and both indexes from
    scratch. If ``start()`` is called again while a load is still in
    flight, the older load's results are discarded when they arrive.

    Usage:
        session = ResolutionSession(
            font_sources=[FontFileSource(p) for p in font_paths],
            definition_source=BungieManifestSource(api_key),
            override_store=JsonOverrideStore(data_dir / "overrides.json"),
        )
        await session.start()
        session.assign_override("[Boss]", glyph_name="boss")
        print(session.tables.csharp)
    """

    def __init__(
        self,
        font_sources: Sequence[FontSource],
        definition_source: DefinitionSource,
        override_store: OverrideStore,
        primary_locale: str = "en",
        secondary_locale: str = "zh-cht",
    ) -> None:
        self.font_sources = list(font_sources)
        self.definition_source = definition_source
        self.primary_locale = primary_locale
        self.secondary_locale = secondary_locale

        self.overrides = OverrideMap.load_from(override_store)
        self.overrides.on_change(self._recompute)

        self._catalog = GlyphCatalog()
        self._primary: DefinitionIndex | None = None
        self._secondary: DefinitionIndex | None = None
        self._icons: list[ResolvedIcon] = []
        self._tables: ExportTables = export_tables([])

        self._generation = 0
        self._pending = 0
        self._errors: list[str] = []
        self._listeners: list[Callable[[], None]] = []

    # =========================================================================
    # Loading
    # =========================================================================

    async def start(self) -> SessionStatus:
        """Load fonts and both locale documents concurrently.

        Failures are logged and recorded in the returned status; the
        affected catalog or index simply stays empty. Call again to retry.
        """
        self._generation += 1
        generation = self._generation
        self._errors = []
        self.definition_source.reset()
        self._catalog = GlyphCatalog()
        self._primary = None
        self._secondary = None
        self._recompute()

        logger.info(f"Starting session generation {generation}")
        self._pending += 1
        try:
            await asyncio.gather(
                self._load_catalog(generation),
                self._load_index(generation, self.primary_locale, primary=True),
                self._load_index(generation, self.secondary_locale, primary=False),
            )
        finally:
            self._pending -= 1

        return self.status()

    def _is_current(self, generation: int, what: str) -> bool:
        if generation != self._generation:
            logger.info(f"Discarding stale {what} from generation {generation}")
            return False
        return True

    def _record_error(self, generation: int, message: str) -> None:
        logger.error(message)
        if generation == self._generation:
            self._errors.append(message)

    def _read_fonts(self) -> GlyphCatalog:
        return GlyphCatalog.build(
            (source.source_id, source.load_glyphs()) for source in self.font_sources
        )

    async def _load_catalog(self, generation: int) -> None:
        try:
            catalog = await asyncio.to_thread(self._read_fonts)
        except FontSourceError as e:
            self._record_error(generation, f"Font loading failed: {e}")
            return

        if not self._is_current(generation, "glyph catalog"):
            return
        self._catalog = catalog
        logger.info(f"Glyph catalog ready: {len(catalog)} glyphs from {len(self.font_sources)} fonts")
        self._notify()

    async def _load_index(self, generation: int, locale: str, primary: bool) -> None:
        try:
            document = await self.definition_source.fetch(locale)
        except DefinitionSourceError as e:
            self._record_error(generation, f"Definitions for {locale} failed: {e}")
            return

        if not self._is_current(generation, f"{locale} definitions"):
            return

        index = DefinitionIndex.index_by(document, locale=locale)
        if primary:
            self._primary = index
        else:
            self._secondary = index
        logger.info(f"Indexed {len(index)} definitions for {locale}")
        self._recompute()

    # =========================================================================
    # Derived state
    # =========================================================================

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked whenever session state changes."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()

    def _recompute(self) -> None:
        if self._primary is None or self._secondary is None:
            self._icons = []
        else:
            self._icons = resolve_icons(
                self._primary, self._secondary, self.overrides.snapshot()
            )
        self._tables = export_tables(self._icons)
        self._notify()

    @property
    def ready(self) -> bool:
        """Whether both locale indexes are loaded."""
        return self._primary is not None and self._secondary is not None

    @property
    def catalog(self) -> GlyphCatalog:
        return self._catalog

    @property
    def icons(self) -> list[ResolvedIcon]:
        return list(self._icons)

    @property
    def tables(self) -> ExportTables:
        return self._tables

    def unresolved(self) -> list[ResolvedIcon]:
        return [icon for icon in self._icons if not icon.is_resolved]

    def collisions(self) -> list[PlaceholderCollision]:
        if not self.ready:
            return []
        return find_collisions(self._primary)

    def search(self, query: str) -> list[GlyphRecord]:
        return search_glyphs(self._catalog, query)

    def get_icon(self, substring: str) -> ResolvedIcon | None:
        for icon in self._icons:
            if icon.substring == substring:
                return icon
        return None

    # =========================================================================
    # Overrides
    # =========================================================================

    def assign_override(
        self,
        substring: str,
        glyph_name: str | None = None,
        char: str | None = None,
    ) -> ResolvedIcon | None:
        """Set the override for ``substring`` from a catalog glyph or a literal character.

        Args:
            substring: Placeholder token to override
            glyph_name: Name of a glyph in the catalog
            char: Literal override character, used when no glyph name is given

        Returns:
            The recomputed icon, or None if the placeholder is not in the
            current resolved set (the override is stored regardless)

        Raises:
            SessionError: If neither or an unknown glyph is given
        """
        if glyph_name:
            record = self._catalog.get(glyph_name)
            if record is None:
                raise SessionError(f"Glyph '{glyph_name}' not found in catalog")
            value = record.char
        elif char:
            value = char
        else:
            raise SessionError("Provide either a glyph name or a character")

        try:
            self.overrides.set(substring, value)
        except ValueError as e:
            raise SessionError(str(e)) from e
        except OverrideStoreError as e:
            logger.error(f"Override for {substring} not saved: {e}")
            raise SessionError(f"Override for {substring} not saved: {e}") from e

        logger.info(f"Override set: {substring} -> U+{ord(value):04X}")
        return self.get_icon(substring)

    def clear_override(self, substring: str) -> bool:
        """Remove the override for ``substring``.

        Raises:
            SessionError: If the change cannot be saved
        """
        try:
            removed = self.overrides.remove(substring)
        except OverrideStoreError as e:
            logger.error(f"Override for {substring} not cleared: {e}")
            raise SessionError(f"Override for {substring} not cleared: {e}") from e
        if removed:
            logger.info(f"Override cleared: {substring}")
        return removed

    def status(self) -> SessionStatus:
        return SessionStatus(
            generation=self._generation,
            loading=self._pending > 0,
            glyph_count=len(self._catalog),
            primary_locale=self.primary_locale,
            secondary_locale=self.secondary_locale,
            primary_count=len(self._primary) if self._primary is not None else None,
            secondary_count=len(self._secondary) if self._secondary is not None else None,
            icon_count=len(self._icons),
            unresolved_count=len(self.unresolved()),
            override_count=len(self.overrides),
            errors=list(self._errors),
        )
