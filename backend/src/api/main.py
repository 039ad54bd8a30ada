"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI

load_dotenv()

from .middleware import register_error_handlers
from .routes import search, system, workspace
from ..services.code_search import (
    CodeSearchService,
    get_code_search_service,
    reset_code_search_service,
)
from ..services.config import get_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Attach the configured workspace on startup; release the host on shutdown."""
    system.install_memory_handler()
    config = get_config()
    service = get_code_search_service()
    if config.workspace_root is not None:
        # Fail fast: a server without its host would only error on first request.
        service.attach_workspace(config.workspace_root)
        logger.info("Startup complete: workspace %s attached", config.workspace_root)
    else:
        logger.warning("WORKSPACE_ROOT not set; attach a workspace via POST /api/workspace")
    try:
        yield
    finally:
        reset_code_search_service()


app = FastAPI(
    title="Code Search API",
    description="Symbol and text search with source context over a host code index",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(search.router, tags=["search"])
app.include_router(workspace.router, tags=["workspace"])
app.include_router(system.router, tags=["system"])


@app.get("/health")
async def health(service: CodeSearchService = Depends(get_code_search_service)):
    """Health check endpoint."""
    root = service.workspace_root
    return {"status": "healthy", "workspace": str(root) if root else None}


__all__ = ["app"]
