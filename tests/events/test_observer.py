"""Tests for LoggingObserver."""

import logging

import pytest
from vfs_host.events import ConfigIgnored
from vfs_host.events import DiagnosticReported
from vfs_host.events import EventBus
from vfs_host.events import FileLoaded
from vfs_host.events import FileNotFound
from vfs_host.events import FileProbeMissed
from vfs_host.events import FileRead
from vfs_host.events import LibraryMissing
from vfs_host.events import LoggingObserver
from vfs_host.events import SpecifierFailed


@pytest.fixture
def observed(caplog):
    """Bus with a LoggingObserver; returns a publish function."""
    caplog.set_level(logging.DEBUG, logger="vfs_host")
    bus = EventBus()
    bus.subscribe(LoggingObserver())
    return bus.publish


def records(caplog):
    return [(r.levelno, r.getMessage()) for r in caplog.records if r.name == "vfs_host"]


class TestLoggingObserver:
    def test_file_loaded(self, observed, caplog):
        observed(FileLoaded(url="https://cdn.test/a.ts", path="/https/cdn.test/a.ts", size=42))
        assert records(caplog) == [(logging.DEBUG, "Loaded https://cdn.test/a.ts (42 bytes)")]

    def test_library_traffic_is_silent(self, observed, caplog):
        observed(FileLoaded(url="https://libs/lib.dom.d.ts", path="/https/libs/lib.dom.d.ts", size=1, is_library=True))
        observed(FileRead(path="/https/libs/dom.ts", found_path="/https/libs/lib.dom.d.ts", is_library=True))
        assert records(caplog) == []

    def test_redirected_read_is_info(self, observed, caplog):
        observed(FileRead(path="/a.ts/jsx-runtime", found_path="/a.ts"))
        observed(FileRead(path="/b.ts", found_path="/b.ts"))
        assert records(caplog) == [
            (logging.INFO, "Read /a.ts/jsx-runtime as /a.ts"),
            (logging.DEBUG, "Read /b.ts"),
        ]

    def test_problems(self, observed, caplog):
        observed(FileNotFound(path="/missing.ts"))
        observed(FileProbeMissed(path="/probe.ts"))
        observed(SpecifierFailed(specifier="react", source_url="file:///m.ts", error="no mapping"))
        observed(LibraryMissing(name="dom", error="404 Not Found"))
        observed(ConfigIgnored(path="/p/deno.json", error="bad json"))

        assert records(caplog) == [
            (logging.WARNING, "File not found: /missing.ts"),
            (logging.DEBUG, "Checked exists: /probe.ts - False"),
            (logging.ERROR, "Transforming specifier 'react' in file:///m.ts failed: no mapping"),
            (logging.WARNING, "Loading lib file 'dom' failed: 404 Not Found"),
            (logging.ERROR, "Failed to load /p/deno.json: bad json"),
        ]

    @pytest.mark.parametrize(
        "origin,level,prefix",
        [
            ("project", logging.WARNING, "TS Error in project"),
            ("library", logging.DEBUG, "TS Error in default lib"),
            ("dependency", logging.INFO, "TS Error in dependency"),
        ],
    )
    def test_diagnostic_levels(self, observed, caplog, origin, level, prefix):
        observed(DiagnosticReported(origin=origin, message="/a.ts:1:2: oops"))
        assert records(caplog) == [(level, f"{prefix}: /a.ts:1:2: oops")]

    def test_custom_logger(self, caplog):
        caplog.set_level(logging.DEBUG, logger="custom")
        LoggingObserver(logging.getLogger("custom"))(FileNotFound(path="/x.ts"))
        assert [r.name for r in caplog.records] == ["custom"]
