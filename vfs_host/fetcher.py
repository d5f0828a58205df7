"""Protocol-dispatching content fetcher with a durable response cache.

- ``file:``  read from disk
- ``https:`` cached GET; a ``X-TypeScript-Types`` header redirects to the
  declaration file, which is always preferred over executable source
- ``npm:`` / ``jsr:`` rewritten to the CDN and fetched as https
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path
from urllib.parse import urljoin
from urllib.parse import urlsplit

import httpx
from pydantic import AwareDatetime
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .errors import FetchFailure
from .errors import ProtocolUnsupported
from .paths import DECLARATION_SUFFIX
from .paths import GUESSED_SUFFIX
from .paths import file_url_to_path
from .paths import has_script_extension
from .paths import registry_to_network_url
from .paths import url_scheme
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

TYPES_HEADER = "x-typescript-types"
FRESHNESS_WINDOW = timedelta(hours=24)
REQUEST_TIMEOUT = 30.0


def get_cache_dir() -> Path:
    """Fetch cache directory (``VFS_HOST_CACHE_DIR`` or ``~/.vfs-host/cache/fetch``)."""
    if env_dir := os.environ.get("VFS_HOST_CACHE_DIR"):
        return Path(env_dir)
    return Path.home() / ".vfs-host" / "cache" / "fetch"


class CachedResponse(BaseModel):
    """Snapshot of one successful GET."""

    url: str = Field(description="Requested URL (cache key)")
    response_url: str = Field(description="Final URL after redirects")
    text: str
    headers: dict[str, str] = Field(default_factory=dict, description="Lower-cased response headers")
    fetched_at: AwareDatetime


class FetchResult(BaseModel):
    """Text of a module and the URL it effectively came from."""

    text: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class FetchCache:
    """One JSON file per URL, keyed by the sha256 of the URL.

    Entries older than ``ttl`` are discarded on read, and so are entries
    that can't be decoded.
    """

    def __init__(self, cache_dir: Path | None = None, ttl: timedelta = FRESHNESS_WINDOW):
        self.cache_dir = cache_dir or get_cache_dir()
        self.ttl = ttl

    def _entry_path(self, url: str) -> Path:
        return self.cache_dir / f"{hashlib.sha256(url.encode()).hexdigest()}.json"

    def get(self, url: str) -> CachedResponse | None:
        """Return a fresh cached response for ``url``, or None."""
        entry_path = self._entry_path(url)
        if not entry_path.exists():
            return None

        try:
            cached = CachedResponse.model_validate_json(entry_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Cache entry for {url} corrupted, will fetch fresh data: {format_error_message(e)}")
            entry_path.unlink(missing_ok=True)
            return None

        age = datetime.now(UTC) - cached.fetched_at
        if age > self.ttl:
            logger.debug(f"Cache expired for {url} (age: {age.total_seconds():.0f}s)")
            entry_path.unlink(missing_ok=True)
            return None

        return cached

    def put(self, response: CachedResponse) -> None:
        entry_path = self._entry_path(response.url)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = entry_path.with_suffix(".tmp")
            tmp_path.write_text(response.model_dump_json(), encoding="utf-8")
            tmp_path.replace(entry_path)
        except OSError as e:
            logger.warning(f"Failed to save cache entry for {response.url}: {format_error_message(e)}")

    def clear(self) -> int:
        """Delete every cache entry. Returns the number of entries removed."""
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for entry_path in self.cache_dir.glob("*.json"):
            entry_path.unlink(missing_ok=True)
            removed += 1
        return removed


class ContentFetcher:
    """Fetches module text for a URL, dispatching by protocol."""

    def __init__(self, client: httpx.AsyncClient | None = None, cache: FetchCache | None = None):
        self.client = client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT, follow_redirects=True)
        self.cache = cache or FetchCache()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a source file or its types.

        Returns:
            Text content and the URL it was resolved to

        Raises:
            ProtocolUnsupported: Unknown scheme
            FetchFailure: Network error, non-success status, unreadable file
        """
        scheme = url_scheme(url)

        if scheme == "file":
            return await self._read_local(url)
        if scheme == "https":
            return await self._fetch_remote(url)
        if scheme in ("npm", "jsr"):
            return await self.fetch(registry_to_network_url(url))
        raise ProtocolUnsupported(url)

    async def _read_local(self, url: str) -> FetchResult:
        path = file_url_to_path(url)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FetchFailure(url, format_error_message(e)) from e
        return FetchResult(text=text, url=url)

    async def _fetch_remote(self, url: str) -> FetchResult:
        response = await self.cached_get(url)

        types_url = response.headers.get(TYPES_HEADER)
        if types_url is not None:
            types_response = await self.cached_get(urljoin(response.response_url, types_url))
            resolved = types_response.response_url
            if not resolved.endswith(DECLARATION_SUFFIX):
                resolved += DECLARATION_SUFFIX
            return FetchResult(text=types_response.text, url=resolved, headers=types_response.headers)

        resolved = response.response_url
        # Best-effort guess; nothing verifies that the content really is TypeScript
        if not has_script_extension(urlsplit(resolved).path):
            resolved += GUESSED_SUFFIX
        return FetchResult(text=response.text, url=resolved, headers=response.headers)

    async def cached_get(self, url: str) -> CachedResponse:
        """GET ``url`` through the durable cache.

        Raises:
            FetchFailure: Network error or non-success status
        """
        if (cached := await asyncio.to_thread(self.cache.get, url)) is not None:
            return cached

        logger.debug(f"Fetching {url}")
        try:
            resp = await self.client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchFailure(url, f"{e.response.status_code} {e.response.reason_phrase}") from e
        except httpx.HTTPError as e:
            raise FetchFailure(url, format_error_message(e)) from e

        response = CachedResponse(
            url=url,
            response_url=str(resp.url),
            text=resp.text,
            headers={k.lower(): v for k, v in resp.headers.items()},
            fetched_at=datetime.now(UTC),
        )
        await asyncio.to_thread(self.cache.put, response)
        return response

