"""Position-based text splicing.

Rewrites discovered while transforming a file arrive in any order (some
wait on network I/O), but all of them name byte ranges of the ORIGINAL text.
``TextEditor`` collects them and applies them in one pass, so offsets are
never recomputed against partially edited text.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Edit:
    """Replace ``original[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: bytes


class TextEditor:
    """Collects non-overlapping byte-range replacements over an original text."""

    def __init__(self, original: bytes):
        self.original = original
        self._edits: list[Edit] = []

    def overwrite(self, start: int, end: int, replacement: str | bytes) -> None:
        """Record a replacement of ``original[start:end]``.

        Raises:
            ValueError: Range is empty, out of bounds, or overlaps a recorded edit
        """
        if not 0 <= start < end <= len(self.original):
            raise ValueError(f"Invalid range {start}:{end} for text of {len(self.original)} bytes")

        for edit in self._edits:
            if start < edit.end and edit.start < end:
                raise ValueError(f"Range {start}:{end} overlaps {edit.start}:{edit.end}")

        if isinstance(replacement, str):
            replacement = replacement.encode("utf-8")
        self._edits.append(Edit(start, end, replacement))

    @property
    def edits(self) -> list[Edit]:
        """Recorded edits in original-text order."""
        return sorted(self._edits)

    def to_bytes(self) -> bytes:
        parts: list[bytes] = []
        cursor = 0
        for edit in self.edits:
            parts.append(self.original[cursor : edit.start])
            parts.append(edit.replacement)
            cursor = edit.end
        parts.append(self.original[cursor:])
        return b"".join(parts)

    def __str__(self) -> str:
        return self.to_bytes().decode("utf-8")

    def __len__(self) -> int:
        return len(self._edits)
