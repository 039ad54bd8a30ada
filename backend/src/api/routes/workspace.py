"""HTTP API routes for workspace attach/detach."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...services.code_search import CodeSearchService, get_code_search_service

router = APIRouter()


class WorkspaceStatus(BaseModel):
    """Which workspace, if any, searches run against."""

    attached: bool
    root: Optional[str] = None


class AttachRequest(BaseModel):
    root: str = Field(..., min_length=1, description="Absolute path of the workspace directory")


def _status(service: CodeSearchService) -> WorkspaceStatus:
    root = service.workspace_root
    return WorkspaceStatus(attached=root is not None, root=str(root) if root else None)


@router.get("/api/workspace", response_model=WorkspaceStatus)
async def get_workspace(service: CodeSearchService = Depends(get_code_search_service)):
    return _status(service)


@router.post("/api/workspace", response_model=WorkspaceStatus)
async def attach_workspace(
    payload: AttachRequest,
    service: CodeSearchService = Depends(get_code_search_service),
):
    """Open a workspace; replaces the one currently attached."""
    service.attach_workspace(payload.root)
    return _status(service)


@router.delete("/api/workspace", response_model=WorkspaceStatus)
async def detach_workspace(service: CodeSearchService = Depends(get_code_search_service)):
    service.detach()
    return _status(service)


__all__ = ["router", "WorkspaceStatus", "AttachRequest"]
