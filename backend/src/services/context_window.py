"""Context window extraction around a hit."""

from __future__ import annotations

from typing import Optional, Tuple

from .host import TextDocument


def window_bounds(
    last_line: int,
    line: int,
    before: int,
    after: int,
    end_line: Optional[int] = None,
) -> Tuple[int, int]:
    """Return the inclusive ``(start, end)`` line range of a context window.

    The window covers ``before`` lines above ``line`` through ``after`` lines
    below ``end_line`` (``line`` when not given), clamped to ``[1, last_line]``
    on each side independently.
    """
    last_line = max(1, last_line)
    before = max(0, before)
    after = max(0, after)
    span_end = max(line, end_line) if end_line is not None else line

    start = max(1, line - before)
    end = min(last_line, span_end + after)
    start = min(start, last_line)
    end = max(end, start)
    return start, end


def extract_context(
    document: TextDocument,
    line: int,
    before: int,
    after: int,
    end_line: Optional[int] = None,
) -> str:
    """Return the literal text of the clamped window around ``line``."""
    start, end = window_bounds(document.last_line, line, before, after, end_line)
    return document.text_of_lines(start, end)


__all__ = ["window_bounds", "extract_context"]
