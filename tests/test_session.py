"""Tests for the resolution session shell."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from iconmap.models import RawGlyph
from iconmap.overrides import MemoryOverrideStore, OverrideStoreError
from iconmap.session import ResolutionSession, SessionError
from iconmap.sources.bungie import BungieManifestSource
from iconmap.sources.base import (
    DefinitionSource,
    DefinitionSourceError,
    FontSource,
    FontSourceError,
)

BOSS_GLYPH = chr(0xE010)
ARC_GLYPH = chr(0xE099)


class FakeFontSource(FontSource):
    def __init__(self, source_id: str, glyphs: list[tuple[str, int]], fail: bool = False):
        self._source_id = source_id
        self.glyphs = [RawGlyph(name=n, codepoint=c) for n, c in glyphs]
        self.fail = fail

    @property
    def source_id(self) -> str:
        return self._source_id

    def load_glyphs(self) -> list[RawGlyph]:
        if self.fail:
            raise FontSourceError(f"{self._source_id} is broken")
        return self.glyphs


class FakeDefinitionSource(DefinitionSource):
    def __init__(self, documents: dict[str, dict], failing: set[str] | None = None):
        self.documents = documents
        self.failing = failing or set()

    async def fetch(self, locale: str) -> dict:
        if locale in self.failing:
            raise DefinitionSourceError(f"{locale} unavailable")
        return self.documents[locale]


class ResettableDefinitionSource(FakeDefinitionSource):
    def __init__(self, documents: dict[str, dict]):
        super().__init__(documents)
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


class FailingStore(MemoryOverrideStore):
    def save(self, overrides):
        raise OverrideStoreError("disk full")


class SlowFirstLoadSource(DefinitionSource):
    """Holds the first session's fetches until released."""

    def __init__(self, first: dict[str, dict], later: dict[str, dict]):
        self.first = first
        self.later = later
        self.calls = 0
        self.release = asyncio.Event()

    async def fetch(self, locale: str) -> dict:
        self.calls += 1
        if self.calls <= 2:
            await self.release.wait()
            return self.first[locale]
        return self.later[locale]


FONTS = [
    FakeFontSource("Destiny_Keys", [("boss", 0xE010), ("arc", 0xE099)]),
    FakeFontSource("Destiny_Symbols_PC", [("arc", 0xE500), ("heavy_ammo", 0xE300)]),
]


@pytest.fixture
def documents(primary_document, secondary_document) -> dict[str, dict]:
    return {"en": primary_document, "zh-cht": secondary_document}


def _session(documents, store=None, fonts=None, source=None) -> ResolutionSession:
    return ResolutionSession(
        font_sources=FONTS if fonts is None else fonts,
        definition_source=source or FakeDefinitionSource(documents),
        override_store=store or MemoryOverrideStore(),
    )


class TestStart:
    """Test loading inputs."""

    @pytest.mark.asyncio
    async def test_start_builds_everything(self, documents):
        session = _session(documents)

        status = await session.start()

        assert status.generation == 1
        assert status.loading is False
        assert status.glyph_count == 3
        assert status.primary_count == 5
        assert status.secondary_count == 5
        assert status.icon_count == 3
        assert status.unresolved_count == 1
        assert status.errors == []
        assert session.catalog.get("arc").source_id == "Destiny_Keys"
        assert [i.substring for i in session.icons] == ["[Boss]", "[Arc]", "[Solar]"]

    def test_empty_before_start(self, documents):
        """Nothing is resolved before the session loads."""
        session = _session(documents)

        assert session.icons == []
        assert session.tables.rows == ()
        assert session.ready is False
        assert session.collisions() == []

    @pytest.mark.asyncio
    async def test_secondary_failure_leaves_icons_empty(self, documents):
        """With only the primary locale loaded, no partial table is produced."""
        session = _session(
            documents, source=FakeDefinitionSource(documents, failing={"zh-cht"})
        )

        status = await session.start()

        assert status.primary_count == 5
        assert status.secondary_count is None
        assert session.icons == []
        assert json.loads(session.tables.json) == []
        assert any("zh-cht" in error for error in status.errors)

    @pytest.mark.asyncio
    async def test_font_failure_keeps_definitions(self, documents):
        """A broken font leaves the catalog empty but resolution still works."""
        fonts = [FakeFontSource("broken", [], fail=True)]
        session = _session(documents, fonts=fonts)

        status = await session.start()

        assert status.glyph_count == 0
        assert status.icon_count == 3
        assert any("broken" in error for error in status.errors)

    @pytest.mark.asyncio
    async def test_restart_after_failure(self, documents):
        """A failed load can be re-triggered and the errors are cleared."""
        source = FakeDefinitionSource(documents, failing={"en"})
        session = _session(documents, source=source)
        await session.start()
        assert session.ready is False

        source.failing.clear()
        status = await session.start()

        assert session.ready is True
        assert status.errors == []
        assert status.generation == 2

    @pytest.mark.asyncio
    async def test_stale_load_discarded(self, primary_document, secondary_document):
        """Results of a superseded start are dropped when they arrive."""
        first = {
            "en": {"1": {"hash": 1, "progressDescription": "Old [Old]"}},
            "zh-cht": {"1": {"hash": 1, "progressDescription": BOSS_GLYPH}},
        }
        later = {"en": primary_document, "zh-cht": secondary_document}
        source = SlowFirstLoadSource(first, later)
        session = _session(later, source=source)

        first_start = asyncio.create_task(session.start())
        while source.calls < 2:
            await asyncio.sleep(0)

        await session.start()
        source.release.set()
        await first_start

        assert [i.substring for i in session.icons] == ["[Boss]", "[Arc]", "[Solar]"]
        assert session.status().generation == 2

    @pytest.mark.asyncio
    async def test_start_resets_definition_source(self, documents):
        """Every start asks the definition source to forget its previous load."""
        source = ResettableDefinitionSource(documents)
        session = _session(documents, source=source)

        await session.start()
        await session.start()

        assert source.resets == 2

    @pytest.mark.asyncio
    async def test_unwritable_manifest_cache_is_not_fatal(self, documents, tmp_path):
        """Filesystem trouble in the manifest cache never escapes start()."""
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        source = BungieManifestSource("key", cache_dir=blocker / "cache")
        manifest = {
            "Response": {
                "jsonWorldComponentContentPaths": {
                    locale: {"DestinyObjectiveDefinition": f"/json/{locale}/objectives.json"}
                    for locale in documents
                }
            }
        }

        def respond(url):
            response = MagicMock()
            response.status_code = 200
            if url.endswith("/Manifest/"):
                response.json.return_value = manifest
            else:
                response.json.return_value = documents[url.split("/")[-2]]
            return response

        with patch("httpx.AsyncClient") as mock_client_class:
            client = MagicMock()
            client.get = AsyncMock(side_effect=respond)
            client.__aenter__ = AsyncMock(return_value=client)
            client.__aexit__ = AsyncMock(return_value=None)
            mock_client_class.return_value = client

            status = await _session(documents, source=source).start()

        assert status.errors == []
        assert status.icon_count == 3

    @pytest.mark.asyncio
    async def test_listeners_notified(self, documents):
        session = _session(documents)
        calls: list[int] = []
        session.on_change(lambda: calls.append(len(session.icons)))

        await session.start()

        assert calls
        assert calls[-1] == 3


class TestOverrides:
    """Test operator override assignment through the session."""

    @pytest.mark.asyncio
    async def test_assign_by_glyph_name(self, documents):
        """Assigning a catalog glyph overrides the icon and updates both exports."""
        store = MemoryOverrideStore()
        session = _session(documents, store=store)
        await session.start()

        icon = session.assign_override("[Solar]", glyph_name="heavy_ammo")

        assert icon.override_codepoint == 0xE300
        assert store.load() == {"[Solar]": chr(0xE300)}
        assert len(session.tables.rows) == 3
        assert json.loads(session.tables.json)[-1]["unicode"] == chr(0xE300)

    @pytest.mark.asyncio
    async def test_override_beats_resolution(self, documents):
        session = _session(documents)
        await session.start()

        session.assign_override("[Arc]", char=BOSS_GLYPH)

        icon = session.get_icon("[Arc]")
        assert icon.resolved_codepoint == 0xE099
        assert icon.effective_codepoint == 0xE010

    @pytest.mark.asyncio
    async def test_stored_overrides_applied_on_start(self, documents):
        """Overrides loaded from storage apply to the first resolution."""
        store = MemoryOverrideStore({"[Solar]": ARC_GLYPH})
        session = _session(documents, store=store)

        await session.start()

        assert session.get_icon("[Solar]").effective_codepoint == 0xE099
        assert session.unresolved() == []

    @pytest.mark.asyncio
    async def test_clear_override(self, documents):
        store = MemoryOverrideStore({"[Solar]": ARC_GLYPH})
        session = _session(documents, store=store)
        await session.start()

        assert session.clear_override("[Solar]") is True
        assert session.get_icon("[Solar]").effective_codepoint is None
        assert store.load() == {}
        assert session.clear_override("[Solar]") is False

    @pytest.mark.asyncio
    async def test_unknown_glyph_rejected(self, documents):
        session = _session(documents)
        await session.start()

        with pytest.raises(SessionError):
            session.assign_override("[Solar]", glyph_name="nope")

    def test_requires_glyph_or_char(self, documents):
        with pytest.raises(SessionError):
            _session(documents).assign_override("[Solar]")

    def test_multi_character_rejected(self, documents):
        with pytest.raises(SessionError):
            _session(documents).assign_override("[Solar]", char="ab")

    def test_override_for_unknown_placeholder_is_stored(self, documents):
        """Overrides can be set before definitions load."""
        store = MemoryOverrideStore()
        session = _session(documents, store=store)

        assert session.assign_override("[Later]", char=ARC_GLYPH) is None
        assert store.load() == {"[Later]": ARC_GLYPH}

    @pytest.mark.asyncio
    async def test_failed_save_keeps_state_consistent(self, documents):
        """A rejected write surfaces as SessionError and changes nothing."""
        session = _session(documents, store=FailingStore({"[Arc]": BOSS_GLYPH}))
        await session.start()

        with pytest.raises(SessionError) as exc_info:
            session.assign_override("[Boss]", char=ARC_GLYPH)
        assert "disk full" in str(exc_info.value)
        with pytest.raises(SessionError):
            session.clear_override("[Arc]")

        assert session.overrides.snapshot() == {"[Arc]": BOSS_GLYPH}
        assert session.get_icon("[Boss]").override_codepoint is None
        assert session.get_icon("[Arc]").effective_codepoint == 0xE010


class TestSearchAndCollisions:
    """Test the read helpers."""

    @pytest.mark.asyncio
    async def test_search(self, documents):
        session = _session(documents)
        await session.start()

        assert [r.name for r in session.search("AR")] == ["arc"]
        assert session.search("") == []

    @pytest.mark.asyncio
    async def test_collisions(self, documents):
        session = _session(documents)
        await session.start()

        collisions = session.collisions()
        assert [(c.substring, c.kept_hash, c.dropped_hash) for c in collisions] == [
            ("[Boss]", 42, 45)
        ]
