"""Tests for the protocol-dispatching fetcher and its durable cache."""

from datetime import UTC
from datetime import datetime
from datetime import timedelta

import httpx
import pytest
from vfs_host.errors import FetchFailure
from vfs_host.errors import ProtocolUnsupported
from vfs_host.fetcher import CachedResponse
from vfs_host.fetcher import ContentFetcher
from vfs_host.fetcher import FetchCache
from vfs_host.fetcher import get_cache_dir


class TestLocalFiles:
    @pytest.mark.asyncio
    async def test_reads_file_url(self, fetcher, tmp_path):
        source = tmp_path / "main.ts"
        source.write_text("export const x = 1;\n", encoding="utf-8")

        result = await fetcher.fetch(source.as_uri())

        assert result.text == "export const x = 1;\n"
        assert result.url == source.as_uri()

    @pytest.mark.asyncio
    async def test_missing_file_is_fetch_failure(self, fetcher, tmp_path):
        with pytest.raises(FetchFailure):
            await fetcher.fetch((tmp_path / "missing.ts").as_uri())

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_fetch_failure(self, fetcher, tmp_path):
        source = tmp_path / "bad.ts"
        source.write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(FetchFailure):
            await fetcher.fetch(source.as_uri())


class TestRemote:
    @pytest.mark.asyncio
    async def test_types_header_redirects_to_declarations(self, fetcher, remote):
        remote.add(
            "https://esm.sh/react@18",
            "export default {};",
            headers={"X-TypeScript-Types": "/v135/@types/react@18/index.d.ts"},
        )
        remote.add("https://esm.sh/v135/@types/react@18/index.d.ts", "declare const React: any;")

        result = await fetcher.fetch("https://esm.sh/react@18")

        assert result.text == "declare const React: any;"
        assert result.url == "https://esm.sh/v135/@types/react@18/index.d.ts"

    @pytest.mark.asyncio
    async def test_types_url_without_declaration_suffix_gets_one(self, fetcher, remote):
        remote.add("https://cdn.test/pkg", "js", headers={"X-TypeScript-Types": "https://cdn.test/types/pkg"})
        remote.add("https://cdn.test/types/pkg", "declare const pkg: 1;")

        result = await fetcher.fetch("https://cdn.test/pkg")

        assert result.url == "https://cdn.test/types/pkg.d.ts"

    @pytest.mark.asyncio
    async def test_extensionless_url_is_guessed_typescript(self, fetcher, remote):
        remote.add("https://cdn.test/mod", "export {};")

        result = await fetcher.fetch("https://cdn.test/mod")

        assert result.url == "https://cdn.test/mod.ts"

    @pytest.mark.asyncio
    async def test_script_extension_is_kept(self, fetcher, remote):
        remote.add("https://cdn.test/mod.js", "export {};")

        result = await fetcher.fetch("https://cdn.test/mod.js")

        assert result.url == "https://cdn.test/mod.js"

    @pytest.mark.asyncio
    async def test_not_found_is_fetch_failure(self, fetcher):
        with pytest.raises(FetchFailure) as exc_info:
            await fetcher.fetch("https://cdn.test/missing.ts")
        assert "404" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_network_error_is_fetch_failure(self, cache):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = ContentFetcher(client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)), cache=cache)

        with pytest.raises(FetchFailure):
            await fetcher.fetch("https://cdn.test/mod.ts")


class TestRegistries:
    @pytest.mark.asyncio
    async def test_npm_goes_through_cdn(self, fetcher, remote):
        remote.add("https://esm.sh/preact@10", "export {};")

        result = await fetcher.fetch("npm:preact@10")

        assert remote.requests == ["https://esm.sh/preact@10"]
        assert result.url == "https://esm.sh/preact@10.ts"

    @pytest.mark.asyncio
    async def test_jsr_goes_through_cdn(self, fetcher, remote):
        remote.add("https://esm.sh/jsr/@std/path", "export {};")

        await fetcher.fetch("jsr:@std/path")

        assert remote.requests == ["https://esm.sh/jsr/@std/path"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["http://cdn.test/mod.ts", "data:text/javascript,export{}", "node:fs"])
    async def test_unsupported_protocols(self, fetcher, url):
        with pytest.raises(ProtocolUnsupported):
            await fetcher.fetch(url)


class TestFetchCache:
    @pytest.mark.asyncio
    async def test_fresh_entry_answers_without_request(self, fetcher, remote):
        remote.add("https://cdn.test/mod.ts", "export {};")

        await fetcher.fetch("https://cdn.test/mod.ts")
        await fetcher.fetch("https://cdn.test/mod.ts")

        assert remote.count("https://cdn.test/mod.ts") == 1

    @pytest.mark.asyncio
    async def test_stale_entry_is_fetched_exactly_once(self, fetcher, remote, cache):
        url = "https://cdn.test/mod.ts"
        cache.put(
            CachedResponse(
                url=url,
                response_url=url,
                text="old",
                fetched_at=datetime.now(UTC) - timedelta(hours=25),
            )
        )
        remote.add(url, "new")

        first = await fetcher.fetch(url)
        second = await fetcher.fetch(url)

        assert first.text == "new"
        assert second.text == "new"
        assert remote.count(url) == 1

    @pytest.mark.asyncio
    async def test_cache_survives_new_instances(self, fetcher, remote, tmp_path):
        remote.add("https://cdn.test/mod.ts", "export {};")
        await fetcher.fetch("https://cdn.test/mod.ts")

        client = httpx.AsyncClient(transport=httpx.MockTransport(remote.handler))
        restarted = ContentFetcher(client=client, cache=FetchCache(tmp_path / "fetch-cache"))
        result = await restarted.fetch("https://cdn.test/mod.ts")

        assert result.text == "export {};"
        assert remote.count("https://cdn.test/mod.ts") == 1

    @pytest.mark.asyncio
    async def test_types_header_is_cached(self, fetcher, remote):
        remote.add("https://esm.sh/lib", "js", headers={"X-TypeScript-Types": "/lib.d.ts"})
        remote.add("https://esm.sh/lib.d.ts", "declare const lib: 1;")

        await fetcher.fetch("https://esm.sh/lib")
        result = await fetcher.fetch("https://esm.sh/lib")

        assert result.url == "https://esm.sh/lib.d.ts"
        assert len(remote.requests) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "entry",
        [
            b"\xff\xfe garbage",
            b'{"url": "https://cdn.test/mod.ts", "response_url": "https://cdn.test/mod.ts", "text": "old",'
            b' "headers": {}, "fetched_at": "2020-01-01T00:00:00"}',
        ],
        ids=["undecodable", "naive-timestamp"],
    )
    async def test_unusable_entry_is_refetched(self, fetcher, remote, cache, entry):
        url = "https://cdn.test/mod.ts"
        cache.cache_dir.mkdir(parents=True)
        cache._entry_path(url).write_bytes(entry)
        remote.add(url, "export {};")

        result = await fetcher.fetch(url)

        assert result.text == "export {};"
        assert remote.count(url) == 1
        assert cache.get(url).text == "export {};"

    def test_corrupt_entry_is_ignored(self, cache, caplog):
        url = "https://cdn.test/mod.ts"
        cache.cache_dir.mkdir(parents=True)
        cache._entry_path(url).write_text("{not json", encoding="utf-8")

        assert cache.get(url) is None
        assert "corrupted" in caplog.text
        assert not cache._entry_path(url).exists()

    def test_missing_entry(self, cache):
        assert cache.get("https://cdn.test/never.ts") is None
        assert not cache.cache_dir.exists()

    def test_clear(self, cache):
        for name in ("a", "b"):
            cache.put(
                CachedResponse(
                    url=f"https://cdn.test/{name}.ts",
                    response_url=f"https://cdn.test/{name}.ts",
                    text=name,
                    fetched_at=datetime.now(UTC),
                )
            )

        assert cache.clear() == 2
        assert cache.get("https://cdn.test/a.ts") is None

    def test_clear_without_directory(self, tmp_path):
        assert FetchCache(tmp_path / "nowhere").clear() == 0

    def test_cache_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VFS_HOST_CACHE_DIR", str(tmp_path / "custom"))
        assert get_cache_dir() == tmp_path / "custom"
