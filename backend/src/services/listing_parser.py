"""Parser for the find engine's results listing.

The listing is a line-oriented dump with no guaranteed schema. The first line is
a summary header; every other line is expected to look like::

    C:\\src\\render\\scene.cpp(120):    scene.Render();

with an optional drive or UNC prefix and either path separator. Lines that do not
fit are skipped one at a time, so a malformed listing yields fewer hits instead of
a failed search.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Optional

from ..models.host import ListingLine
from .paths import split_lines

logger = logging.getLogger(__name__)

LINE_NUMBER_PATTERN = re.compile(r"\s*(\d+)\s*", re.ASCII)


def parse_listing(raw_text: str) -> Iterator[ListingLine]:
    """Yield hits from a results listing, in listing order.

    Never raises for malformed input. At most one hit is produced per physical
    line after the header.
    """
    for index, physical_line in enumerate(split_lines(raw_text)):
        if index == 0:
            continue
        hit = parse_listing_line(physical_line)
        if hit is not None:
            yield hit


def parse_listing_line(text: str) -> Optional[ListingLine]:
    """Parse one ``<path>(<line>): <match text>`` line, or return None."""
    location_end = _location_end(text)
    if location_end == -1:
        return None

    path_line_column = text[:location_end].strip()
    paren_open = path_line_column.rfind("(")
    paren_close = path_line_column.rfind(")")
    if paren_open == -1 or paren_close == -1 or paren_close < paren_open:
        return None

    path = path_line_column[:paren_open].rstrip().replace("\\", "/")
    if not path:
        return None
    file_name = path[path.rfind("/") + 1:]
    if not file_name:
        return None

    match = LINE_NUMBER_PATTERN.fullmatch(path_line_column[paren_open + 1:paren_close])
    if match is None:
        return None
    line = int(match.group(1))
    if line < 1:
        return None

    return ListingLine(
        path=path,
        file_name=file_name,
        line=line,
        raw_match_text=text[location_end + 1:],
    )


def _location_end(text: str) -> int:
    # The location field ends at the first colon that closes a "(line)" group.
    # Earlier colons belong to drive letters or UNC prefixes.
    colon = text.find(":")
    while colon != -1:
        if text[:colon].rstrip().endswith(")"):
            return colon
        colon = text.find(":", colon + 1)
    return -1


__all__ = ["parse_listing", "parse_listing_line"]
