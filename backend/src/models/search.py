"""Search request/response models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CONTEXT_LINES = 5


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SymbolRequest(WireModel):
    """Find a symbol by exact name."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"symbolName": "Render"}},
    )

    symbol_name: str = Field(..., min_length=1, max_length=256)


class SymbolHit(WireModel):
    """A symbol resolved to the function-level element that declares it."""

    name: str
    kind: str
    file_path: str
    line: int = Field(..., ge=1, description="First line of the declaring element")
    context: Optional[str] = Field(
        default=None, description="Source lines around the element's span"
    )


class SymbolResponse(WireModel):
    symbols: List[SymbolHit] = Field(default_factory=list)


class TextSearchRequest(WireModel):
    """Find literal text under a workspace-relative path."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "bar",
                "searchPath": "src",
                "contextBefore": 2,
                "contextAfter": 1,
                "fileExtension": "*.h;*.cpp",
            }
        },
    )

    text: str = Field(..., min_length=1, max_length=1024)
    search_path: str = Field(..., description="Relative to the workspace root; '' for the root")
    context_before: Optional[int] = Field(default=DEFAULT_CONTEXT_LINES, description="Lines above each hit")
    context_after: Optional[int] = Field(default=DEFAULT_CONTEXT_LINES, description="Lines below each hit")
    file_extension: Optional[str] = Field(
        default=None, description="';'-separated glob list; defaults to the configured filter"
    )

    @field_validator("context_before", "context_after", mode="after")
    @classmethod
    def _clamp_margin(cls, value: Optional[int]) -> int:
        if value is None:
            return DEFAULT_CONTEXT_LINES
        return max(0, value)

    @field_validator("file_extension", mode="after")
    @classmethod
    def _blank_filter_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class TextHit(WireModel):
    """A matching line with its surrounding context window."""

    file_path: str
    line: int = Field(..., ge=1)
    context: str


class TextSearchResponse(WireModel):
    results: List[TextHit] = Field(default_factory=list)


__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "SymbolRequest",
    "SymbolHit",
    "SymbolResponse",
    "TextSearchRequest",
    "TextHit",
    "TextSearchResponse",
]
