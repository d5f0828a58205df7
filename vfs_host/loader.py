"""Program-level load routine: fetch, transform and store one module.

The virtual path of a module is claimed in the store before the routine first
suspends. Any later request for the same path (a sibling racing on the same
dependency, or an import cycle) gets the path back immediately and does no
further work.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .errors import FetchFailure
from .errors import ModuleLoadFailure
from .errors import VfsHostError
from .events import EventBus
from .events import FileLoaded
from .fetcher import ContentFetcher
from .fetcher import FetchResult
from .libraries import LibraryLoader
from .paths import url_to_directory_path
from .paths import url_to_virtual_path
from .resolver import SpecifierResolver
from .store import VirtualFileStore
from .transformer import SourceTransformer
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


class ModuleLoader:
    """Loads modules and their transitive dependencies into a store."""

    def __init__(
        self,
        store: VirtualFileStore,
        fetcher: ContentFetcher,
        resolver: SpecifierResolver,
        events: EventBus,
        default_lib_dir: str,
        fallback_lib_dir: str | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.resolver = resolver
        self.events = events
        self.default_lib_location = url_to_directory_path(default_lib_dir)
        self.libraries = LibraryLoader(self._load_with_fallbacks, default_lib_dir, events, fallback_lib_dir)
        self.transformer = SourceTransformer(resolver, self.load_file, self.libraries.load, events)

    async def load_file(self, url: str, as_url: str | None = None) -> str:
        """Load a file and all its dependencies into the store.

        The file's specifiers are rewritten to virtual paths. If the file has
        declarations, the declarations are loaded instead.

        Args:
            url: URL to fetch
            as_url: URL whose virtual path the file is stored under (default: ``url``)

        Returns:
            Virtual path to import the file from

        Raises:
            ModuleLoadFailure: The file couldn't be fetched or transformed
        """
        return await self._load(url, as_url or url, ())

    async def load_library(self, name: str) -> None:
        await self.libraries.load(name)

    async def _load_with_fallbacks(self, url: str, fallbacks: Sequence[str]) -> str:
        return await self._load(url, url, fallbacks)

    async def _load(self, url: str, as_url: str, fallbacks: Sequence[str]) -> str:
        try:
            path = url_to_virtual_path(as_url)
        except (VfsHostError, ValueError) as e:
            raise ModuleLoadFailure(url, e) from e

        # No await between the membership check and the claim
        if not self.store.reserve(path):
            return path

        try:
            result = await self._fetch_first([url, *fallbacks])
            text = await self.transformer.transform(result.url, path, result.text)
        except Exception as e:
            raise ModuleLoadFailure(url, e) from e

        self.store.fill(path, text)
        self.events.publish(
            FileLoaded(
                url=result.url,
                path=path,
                size=len(text),
                is_library=path.startswith(self.default_lib_location),
            )
        )
        return path

    async def _fetch_first(self, urls: Sequence[str]) -> FetchResult:
        """Fetch the first of ``urls`` that succeeds."""
        errors: list[str] = []
        for url in urls:
            try:
                return await self.fetcher.fetch(url)
            except VfsHostError as e:
                logger.debug(f"Fetching {url} failed: {format_error_message(e)}")
                errors.append(format_error_message(e, include_type=False))
        raise FetchFailure(urls[0], ". ".join(errors))
