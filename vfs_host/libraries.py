"""Default library loading (``lib.dom.d.ts`` and friends).

Libraries come from the configured library root first and from the bundled
``dts/`` directory second. Whichever source answers, the file is stored under
the library root's virtual path. A library missing from both is reported and
skipped; it never fails the build.
"""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from pathlib import Path

from .errors import LibraryLoadFailure
from .errors import VfsHostError
from .events import EventBus
from .events import LibraryMissing
from .paths import join_url
from .utils.error_format import format_error_message

BUNDLED_LIB_DIR = Path(__file__).parent / "dts"

LIB_PREFIX = "lib."
LIB_SUFFIX = ".d.ts"

LoadWithFallbacks = Callable[[str, Sequence[str]], Awaitable[str]]


def library_file_name(name: str) -> str:
    """``"DOM"`` -> ``"lib.dom.d.ts"``; ``"lib.es2023.d.ts"`` stays as is."""
    file_name = name.lower()
    if not file_name.startswith(LIB_PREFIX):
        file_name = LIB_PREFIX + file_name
    if not file_name.endswith(LIB_SUFFIX):
        file_name += LIB_SUFFIX
    return file_name


class LibraryLoader:
    """Loads standard declaration files by logical name."""

    def __init__(
        self,
        load_file: LoadWithFallbacks,
        default_lib_dir: str,
        events: EventBus,
        fallback_lib_dir: str | None = None,
    ):
        """
        Args:
            load_file: Load routine taking a primary URL and fallback URLs
            default_lib_dir: URL of the library root
            events: Event bus for reporting missing libraries
            fallback_lib_dir: URL of the bundled fallback directory
        """
        self.load_file = load_file
        self.default_lib_dir = default_lib_dir
        self.fallback_lib_dir = fallback_lib_dir or BUNDLED_LIB_DIR.as_uri()
        self.events = events

    def primary_url(self, name: str) -> str:
        return join_url(self.default_lib_dir, library_file_name(name))

    def fallback_url(self, name: str) -> str:
        return join_url(self.fallback_lib_dir, f"{library_file_name(name)}.txt")

    async def load_required(self, name: str) -> str:
        """Load library ``name`` and return its virtual path.

        Raises:
            LibraryLoadFailure: Neither the library root nor the fallback has it
        """
        try:
            return await self.load_file(self.primary_url(name), [self.fallback_url(name)])
        except VfsHostError as e:
            raise LibraryLoadFailure(name, format_error_message(e, include_type=False)) from e

    async def load(self, name: str) -> None:
        """Load library ``name``; report and return if no source has it."""
        try:
            await self.load_required(name)
        except LibraryLoadFailure as e:
            self.events.publish(LibraryMissing(name=e.name, error=e.reason))
