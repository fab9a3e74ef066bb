"""
Operator overrides and their persistence.

The override map is loaded once at startup, mutated by operator action,
and written back as a whole after every mutation. Concurrent writers are
not merged per key: the last save wins.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterator, Mapping

logger = logging.getLogger("iconmap")


class OverrideStoreError(Exception):
    """Raised when overrides cannot be written to storage."""
    pass


class OverrideStore(ABC):
    """Key-value blob storage for the override map."""

    @abstractmethod
    def load(self) -> dict[str, str]:
        """Return the stored overrides, or an empty dict if none are stored."""
        ...

    @abstractmethod
    def save(self, overrides: Mapping[str, str]) -> None:
        """Replace the stored overrides with ``overrides``."""
        ...


class MemoryOverrideStore(OverrideStore):
    """Override store that keeps the map in memory only."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self) -> dict[str, str]:
        return dict(self._data)

    def save(self, overrides: Mapping[str, str]) -> None:
        self._data = dict(overrides)
        self.save_count += 1


class JsonOverrideStore(OverrideStore):
    """
    Override store backed by a single JSON file.

    The file holds one JSON object mapping placeholder substrings to
    single-character overrides. A missing file loads as an empty map; a
    corrupt one is discarded with a warning.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Discarding unreadable overrides file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(
                f"Discarding overrides file {self.path}: expected JSON object, got {type(data).__name__}"
            )
            return {}

        return {str(key): str(value) for key, value in data.items() if value}

    def save(self, overrides: Mapping[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(
                json.dumps(dict(overrides), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            tmp_path.replace(self.path)
        except OSError as e:
            raise OverrideStoreError(f"Failed to write overrides to {self.path}: {e}") from e


class OverrideMap:
    """Mutable substring → override mapping that flushes on every change.

    Unlike a plain dict, each mutation immediately saves the whole map to
    the backing store and notifies listeners, so derived tables can be
    recomputed. Removing the last override also saves, so clearing all
    overrides persists.

    Usage:
        overrides = OverrideMap.load_from(JsonOverrideStore(path))
        overrides.set("[Boss]", "\\ue010")
        overrides.remove("[Boss]")
    """

    def __init__(self, store: OverrideStore, initial: Mapping[str, str] | None = None) -> None:
        self._store = store
        self._data: dict[str, str] = dict(initial or {})
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def load_from(cls, store: OverrideStore) -> "OverrideMap":
        overrides = cls(store, store.load())
        logger.info(f"Loaded {len(overrides)} overrides")
        return overrides

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after every persisted mutation."""
        self._listeners.append(callback)

    def set(self, substring: str, value: str) -> None:
        """Assign ``value`` (a single character) as the override for ``substring``."""
        if not value:
            raise ValueError("Override value must be a non-empty character")
        if len(value) != 1:
            raise ValueError(f"Override value must be a single character, got {len(value)}")
        updated = dict(self._data)
        updated[substring] = value
        self._commit(updated)

    def remove(self, substring: str) -> bool:
        """Drop the override for ``substring``. Returns False if none existed."""
        if substring not in self._data:
            return False
        updated = dict(self._data)
        del updated[substring]
        self._commit(updated)
        return True

    def _commit(self, updated: dict[str, str]) -> None:
        # The in-memory map only changes once the store accepted the write
        self._store.save(updated)
        self._data = updated
        for callback in self._listeners:
            callback()

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)

    def get(self, substring: str) -> str | None:
        return self._data.get(substring)

    def __getitem__(self, substring: str) -> str:
        return self._data[substring]

    def __contains__(self, substring: object) -> bool:
        return substring in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)
