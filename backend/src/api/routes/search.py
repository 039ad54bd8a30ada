"""HTTP API routes for symbol and text search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from ...models.host import OutlineResponse
from ...models.search import (
    SymbolRequest,
    SymbolResponse,
    TextSearchRequest,
    TextSearchResponse,
)
from ...services.code_search import CodeSearchService, get_code_search_service
from ...services.outline import DEFAULT_MAX_DEPTH

router = APIRouter()


@router.post("/api/search/symbols", response_model=SymbolResponse)
async def find_symbols(
    payload: SymbolRequest,
    request: Request,
    service: CodeSearchService = Depends(get_code_search_service),
):
    """Find function-level declarations of a symbol by exact name."""
    return await service.find_symbols(payload, should_stop=request.is_disconnected)


@router.post("/api/search/text", response_model=TextSearchResponse)
async def find_text(
    payload: TextSearchRequest,
    request: Request,
    service: CodeSearchService = Depends(get_code_search_service),
):
    """Literal, case-sensitive, whole-word search under a workspace path."""
    return await service.find_text(payload, should_stop=request.is_disconnected)


@router.get("/api/outline", response_model=OutlineResponse)
async def get_outline(
    path: str = Query(..., min_length=1, max_length=1024),
    max_depth: int = Query(DEFAULT_MAX_DEPTH, alias="maxDepth", ge=0, le=64),
    service: CodeSearchService = Depends(get_code_search_service),
):
    """Element tree of one workspace file, flattened depth-first."""
    return await service.outline(path, max_depth=max_depth)


__all__ = ["router"]
