"""Pytest configuration and shared fixtures for vfs_host tests."""

from pathlib import Path

import httpx
import pytest
from vfs_host.events import EventBus
from vfs_host.fetcher import ContentFetcher
from vfs_host.fetcher import FetchCache
from vfs_host.loader import ModuleLoader
from vfs_host.resolver import ImportMap
from vfs_host.resolver import SpecifierResolver
from vfs_host.store import VirtualFileStore

LIB_DIR = "https://libs.example/dts"


class FakeRemote:
    """Canned HTTP responses for ``httpx.MockTransport``, with a request log."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, str, dict[str, str]]] = {}
        self.requests: list[str] = []

    def add(self, url: str, text: str, status: int = 200, headers: dict[str, str] | None = None) -> None:
        self.routes[url] = (status, text, headers or {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.routes:
            return httpx.Response(404, text="Not Found")
        status, text, headers = self.routes[url]
        return httpx.Response(status, text=text, headers=headers)

    def count(self, url: str) -> int:
        return self.requests.count(url)


class RecordedEvents(list):
    """Event handler collecting everything published on a bus."""

    def __call__(self, event) -> None:
        self.append(event)

    def of_type(self, type_name: str) -> list:
        return [e for e in self if e.type == type_name]


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def cache(tmp_path: Path) -> FetchCache:
    return FetchCache(tmp_path / "fetch-cache")


@pytest.fixture
def fetcher(remote: FakeRemote, cache: FetchCache) -> ContentFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(remote.handler), follow_redirects=True)
    return ContentFetcher(client=client, cache=cache)


@pytest.fixture
def recorded() -> RecordedEvents:
    return RecordedEvents()


@pytest.fixture
def events(recorded: RecordedEvents) -> EventBus:
    bus = EventBus()
    bus.subscribe(recorded)
    return bus


@pytest.fixture
def fallback_dir(tmp_path: Path) -> Path:
    path = tmp_path / "fallback-dts"
    path.mkdir()
    return path


@pytest.fixture
def make_loader(fetcher: ContentFetcher, events: EventBus, fallback_dir: Path):
    """Factory for a ModuleLoader over a fresh store."""

    def _make(import_map: ImportMap | None = None) -> ModuleLoader:
        return ModuleLoader(
            VirtualFileStore(),
            fetcher,
            SpecifierResolver(import_map),
            events,
            LIB_DIR,
            fallback_dir.as_uri(),
        )

    return _make


@pytest.fixture
def loader(make_loader) -> ModuleLoader:
    return make_loader()
