"""
Bungie.net manifest client for Destiny 2 objective definitions.

Resolves the per-locale content path of DestinyObjectiveDefinition from the
Destiny 2 manifest, then downloads that document. Downloaded documents are
cached on disk keyed by content path, so a manifest update naturally
invalidates the cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from .base import DefinitionSource, DefinitionSourceError

logger = logging.getLogger("iconmap")


# API Configuration
BUNGIE_BASE_URL = "https://www.bungie.net"
MANIFEST_URL = f"{BUNGIE_BASE_URL}/Platform/Destiny2/Manifest/"
OBJECTIVE_COMPONENT = "DestinyObjectiveDefinition"
DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 3
RETRY_BACKOFF = 2.0


class BungieManifestSource(DefinitionSource):
    """
    Definition source for the Bungie.net Destiny 2 manifest.

    Features:
    - Looks up the locale's objective definition path from the manifest
    - Retries timeouts, rate limiting and server errors with backoff
    - Caches downloaded documents locally
    - Fetches the manifest once per load; ``reset()`` drops it so the next
      load sees a new manifest version
    """

    def __init__(
        self,
        api_key: str,
        cache_dir: Path | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the source.

        Args:
            api_key: Bungie.net application API key (sent as x-api-key)
            cache_dir: Directory for cached definition documents. No caching
                when None.
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise DefinitionSourceError("A Bungie.net API key is required")
        self.api_key = api_key
        self.cache_dir = cache_dir
        self.timeout = timeout
        self._manifest: dict[str, Any] | None = None
        self._manifest_lock = asyncio.Lock()

    def reset(self) -> None:
        """Forget the manifest so the next fetch downloads it again."""
        self._manifest = None

    async def fetch(self, locale: str) -> dict[str, Any]:
        """Fetch the objective definitions for ``locale``."""
        async with httpx.AsyncClient(
            timeout=self.timeout, headers={"x-api-key": self.api_key}
        ) as client:
            content_path = await self._content_path(client, locale)

            cached = self._read_cache(content_path)
            if cached is not None:
                logger.info(f"Using cached {OBJECTIVE_COMPONENT} for {locale}")
                return cached

            logger.info(f"Downloading {OBJECTIVE_COMPONENT} for {locale}")
            document = await self._get_json(client, f"{BUNGIE_BASE_URL}{content_path}")

        if not isinstance(document, dict):
            raise DefinitionSourceError(
                f"Invalid {OBJECTIVE_COMPONENT} document for {locale}: expected JSON object"
            )

        self._write_cache(content_path, document)
        return document

    # =========================================================================
    # Manifest
    # =========================================================================

    async def _content_path(self, client: httpx.AsyncClient, locale: str) -> str:
        """Return the objective definition path for ``locale`` from the manifest."""
        # Both locales of one load share a single manifest request
        async with self._manifest_lock:
            if self._manifest is None:
                self._manifest = await self._get_json(client, MANIFEST_URL)
            manifest = self._manifest

        try:
            paths = manifest["Response"]["jsonWorldComponentContentPaths"]
        except (KeyError, TypeError):
            raise DefinitionSourceError(
                "Invalid manifest response: missing jsonWorldComponentContentPaths"
            ) from None

        if locale not in paths:
            available = ", ".join(sorted(paths))
            raise DefinitionSourceError(
                f"Locale '{locale}' not in manifest. Available: {available}"
            )

        try:
            return paths[locale][OBJECTIVE_COMPONENT]
        except (KeyError, TypeError):
            raise DefinitionSourceError(
                f"Manifest has no {OBJECTIVE_COMPONENT} for locale '{locale}'"
            ) from None

    # =========================================================================
    # HTTP Helpers
    # =========================================================================

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> Any:
        """
        GET a JSON document with retry logic.

        Raises:
            DefinitionSourceError: If the request fails after retries
        """
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await client.get(url)

                if response.status_code == 429:
                    wait = RETRY_BACKOFF ** attempt
                    logger.warning(f"Rate limited by Bungie.net, waiting {wait}s")
                    last_error = DefinitionSourceError("HTTP 429 Too Many Requests")
                    await asyncio.sleep(wait)
                    continue

                if response.status_code in (401, 403):
                    raise DefinitionSourceError(
                        "Bungie.net rejected the API key. Check BUNGIE_API_KEY."
                    )

                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                logger.warning(f"Timeout fetching {url}, attempt {attempt + 1}")
                last_error = e
                await asyncio.sleep(RETRY_BACKOFF ** attempt)

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.warning(
                        f"Server error {e.response.status_code}, attempt {attempt + 1}"
                    )
                    last_error = e
                    await asyncio.sleep(RETRY_BACKOFF ** attempt)
                else:
                    raise DefinitionSourceError(
                        f"Bungie.net returned HTTP {e.response.status_code} for {url}"
                    ) from e

            except httpx.RequestError as e:
                raise DefinitionSourceError(f"Failed to connect to Bungie.net: {e}") from e

            except json.JSONDecodeError as e:
                raise DefinitionSourceError(f"Invalid JSON from {url}: {e}") from e

        raise DefinitionSourceError(
            f"Failed to fetch {url} after {MAX_RETRIES} retries: {last_error}"
        )

    # =========================================================================
    # Cache
    # =========================================================================

    def _cache_path(self, content_path: str) -> Path | None:
        if self.cache_dir is None:
            return None
        # /common/destiny2_content/json/en/DestinyObjectiveDefinition-abc.json
        safe_name = content_path.strip("/").replace("/", "_")
        return self.cache_dir / safe_name

    def _read_cache(self, content_path: str) -> dict[str, Any] | None:
        cache_file = self._cache_path(content_path)
        if cache_file is None or not cache_file.exists():
            return None

        try:
            cached = json.loads(cache_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(f"Corrupt cache file: {cache_file}, refetching")
            try:
                cache_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove corrupt cache file {cache_file}: {e}")
            return None
        except OSError as e:
            logger.warning(f"Could not read cache file {cache_file}: {e}, refetching")
            return None

        return cached if isinstance(cached, dict) else None

    def _write_cache(self, content_path: str, document: dict[str, Any]) -> None:
        cache_file = self._cache_path(content_path)
        if cache_file is None:
            return
        try:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write cache file {cache_file}: {e}")
