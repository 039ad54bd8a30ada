"""Flattened element outline of a single file."""

from __future__ import annotations

from typing import List, Tuple

from ..models.host import CodeElement, OutlineEntry

DEFAULT_MAX_DEPTH = 8


def flatten_outline(
    roots: List[CodeElement], max_depth: int = DEFAULT_MAX_DEPTH
) -> Tuple[List[OutlineEntry], bool]:
    """Walk an element tree depth-first, in source order.

    Returns the entries and whether anything was cut off by ``max_depth``.
    Elements already visited are not walked again.
    """
    entries: List[OutlineEntry] = []
    truncated = False
    visited = set()
    stack = [(element, 0) for element in reversed(roots)]

    while stack:
        element, depth = stack.pop()
        if id(element) in visited:
            continue
        visited.add(id(element))
        entries.append(
            OutlineEntry(
                depth=depth,
                kind=element.kind,
                full_name=element.full_name,
                line=element.start_line,
            )
        )
        if not element.children:
            continue
        if depth + 1 > max_depth:
            truncated = True
            continue
        stack.extend((child, depth + 1) for child in reversed(element.children))

    return entries, truncated


__all__ = ["flatten_outline", "DEFAULT_MAX_DEPTH"]
