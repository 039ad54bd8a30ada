"""Workspace path and line helpers shared by the orchestrators and hosts."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def resolve_within(root: Path, relative: str) -> Path:
    """
    Resolve a path against the workspace root.

    Raises ValueError if the resolved path escapes the root.
    """
    root = root.resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise ValueError(f"Path escapes workspace root: {relative}")
    return candidate


def split_lines(text: str) -> List[str]:
    """Split on ``\\r\\n``, ``\\r`` or ``\\n`` only.

    Form feeds, vertical tabs and Unicode separators stay inside their line,
    so line numbers agree with editors and ctags.
    """
    lines = LINE_BREAK_PATTERN.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


__all__ = ["resolve_within", "split_lines", "LINE_BREAK_PATTERN"]
