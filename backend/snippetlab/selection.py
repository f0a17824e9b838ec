"""Selection extraction: raw text buffer plus offsets to a candidate snippet."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Selection:
    """Half-open character range ``[start, end)`` within a text buffer."""

    start: int
    end: int

    def is_valid_for(self, buffer: str) -> bool:
        return 0 <= self.start < self.end <= len(buffer)


def extract_selection(buffer: str, start: int | None, end: int | None) -> str | None:
    """Return the trimmed selected text, or None when nothing usable is selected.

    None covers a missing range, an out-of-bounds or empty range, and a
    whitespace-only selection.
    """
    if start is None or end is None:
        return None
    if not Selection(start, end).is_valid_for(buffer):
        return None
    text = buffer[start:end].strip()
    return text or None


def is_within_context(raw_text: str, source_context: str) -> bool:
    """True if the trimmed text occurs in the context it was captured from."""
    trimmed = raw_text.strip()
    return bool(trimmed) and len(trimmed) <= len(source_context) and trimmed in source_context
