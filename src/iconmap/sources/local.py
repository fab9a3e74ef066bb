"""
Definition source for locale documents already saved on disk.

Expects one file per locale named after the locale code, e.g.
``en.json`` and ``zh-cht.json``. YAML files are accepted too.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .base import DefinitionSource, DefinitionSourceError

logger = logging.getLogger("iconmap")


class LocalDefinitionSource(DefinitionSource):
    """Reads ``<locale>.json`` / ``<locale>.yaml`` documents from a directory."""

    SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, locale: str) -> Path:
        """Return the first existing document path for ``locale``."""
        for extension in self.SUPPORTED_EXTENSIONS:
            candidate = self.directory / f"{locale}{extension}"
            if candidate.exists():
                return candidate
        raise DefinitionSourceError(
            f"No definition file for locale '{locale}' in {self.directory} "
            f"(looked for {', '.join(locale + ext for ext in self.SUPPORTED_EXTENSIONS)})"
        )

    async def fetch(self, locale: str) -> dict[str, Any]:
        path = self.path_for(locale)
        logger.info(f"Reading definitions for {locale} from {path}")

        try:
            content = path.read_text(encoding="utf-8")
            if path.suffix == ".json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except json.JSONDecodeError as e:
            raise DefinitionSourceError(f"Invalid JSON in {path}: {e}") from e
        except yaml.YAMLError as e:
            raise DefinitionSourceError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise DefinitionSourceError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict):
            raise DefinitionSourceError(
                f"Invalid definition file {path}: expected mapping, got {type(data).__name__}"
            )

        return data
