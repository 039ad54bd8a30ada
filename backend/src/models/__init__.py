"""Pydantic models for data validation and serialization."""

from .host import (
    CodeElement,
    Cursor,
    FindOptions,
    FindStatus,
    ListingLine,
    OutlineEntry,
    OutlineResponse,
)
from .search import (
    SymbolHit,
    SymbolRequest,
    SymbolResponse,
    TextHit,
    TextSearchRequest,
    TextSearchResponse,
)

__all__ = [
    "SymbolRequest",
    "SymbolHit",
    "SymbolResponse",
    "TextSearchRequest",
    "TextHit",
    "TextSearchResponse",
    "CodeElement",
    "Cursor",
    "FindOptions",
    "FindStatus",
    "ListingLine",
    "OutlineEntry",
    "OutlineResponse",
]
