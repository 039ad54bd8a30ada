"""Value types exchanged with the host engine."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CodeElement(BaseModel):
    """A declaration known to the host's code model."""

    kind: str
    full_name: str
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    children: List["CodeElement"] = Field(default_factory=list)


class Cursor(BaseModel):
    """Caret position inside the active document (1-based)."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(..., ge=1)
    column: int = Field(default=1, ge=1)


class FindStatus(str, Enum):
    COMPLETE = "complete"
    PENDING = "pending"
    FAILED = "failed"


class FindOptions(BaseModel):
    """Everything the find engine needs for one find-all run."""

    model_config = ConfigDict(frozen=True)

    query: str
    root_path: str
    recursive: bool = True
    match_case: bool = True
    whole_word: bool = True
    literal: bool = True
    file_filter: str = "*.*"
    wait_for_completion: bool = True


class ListingLine(BaseModel):
    """One hit recovered from the find engine's results listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    file_name: str
    line: int = Field(..., ge=1)
    raw_match_text: str


class OutlineEntry(BaseModel):
    """One node of a file outline, flattened with its depth."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    depth: int
    kind: str
    full_name: str
    line: int


class OutlineResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_path: str
    elements: List[OutlineEntry] = Field(default_factory=list)
    truncated: bool = False


CodeElement.model_rebuild()


__all__ = [
    "CodeElement",
    "Cursor",
    "FindStatus",
    "FindOptions",
    "ListingLine",
    "OutlineEntry",
    "OutlineResponse",
]
