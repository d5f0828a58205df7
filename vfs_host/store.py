"""Append-only path -> text store backing the virtual filesystem."""

from __future__ import annotations

from collections.abc import Iterator


class VirtualFileStore:
    """Plain key-value store of loaded files.

    Contract:
    - A path is reserved once with empty placeholder text, then filled once
      with its final text. Nothing is ever removed.
    - ``reserve`` never suspends: a caller that reserves a path before its
      first ``await`` is the only writer of that path for the whole build.
    - Not a general-purpose concurrent map; all writes go through the
      reserve/fill discipline.
    """

    def __init__(self) -> None:
        self._files: dict[str, str] = {}
        self._settled: set[str] = set()

    def reserve(self, path: str) -> bool:
        """Claim ``path`` with placeholder content.

        Returns:
            True if the caller now owns the path, False if it was already reserved
        """
        if path in self._files:
            return False
        self._files[path] = ""
        return True

    def fill(self, path: str, text: str) -> None:
        """Write the final text of a reserved path.

        Raises:
            KeyError: Path was never reserved
            ValueError: Path was already filled
        """
        if path not in self._files:
            raise KeyError(f"Path was not reserved: {path}")
        if path in self._settled:
            raise ValueError(f"Path already filled: {path}")
        self._files[path] = text
        self._settled.add(path)

    def add(self, path: str, text: str) -> None:
        """Reserve and fill in one step (for files known up front)."""
        if not self.reserve(path):
            raise ValueError(f"Path already reserved: {path}")
        self.fill(path, text)

    def get(self, path: str) -> str | None:
        return self._files.get(path)

    def is_settled(self, path: str) -> bool:
        return path in self._settled

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._files.items()))
