"""FastMCP server exposing symbol and text search tools."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

# Load environment variables from .env file
load_dotenv()

from ..models.search import DEFAULT_CONTEXT_LINES, SymbolRequest, TextSearchRequest
from ..services.code_search import get_code_search_service
from ..services.config import get_config

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "code-search",
    instructions=(
        "Search the attached source workspace. find_symbols resolves an exact symbol name to the "
        "functions declaring it (name, kind, file, first line, surrounding source). find_text runs a "
        "literal, case-sensitive, whole-word search under a path relative to the workspace root and "
        "returns each matching line with contextBefore/contextAfter lines of source (default 5). "
        "fileExtension is a ';'-separated glob list such as '*.h;*.cpp'."
    ),
)


def _log_tool_call(tool_name: str, start_time: float, **fields: Any) -> None:
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "MCP tool called",
        extra={"tool_name": tool_name, "duration_ms": f"{duration_ms:.2f}", **fields},
    )


@mcp.tool(
    name="find_symbols",
    description="Find the function-level declarations of a symbol by exact name.",
)
async def find_symbols(
    symbol_name: str = Field(..., description="Exact symbol name, e.g. 'Render'."),
) -> Dict[str, Any]:
    start_time = time.time()
    service = get_code_search_service()

    response = await service.find_symbols(SymbolRequest(symbol_name=symbol_name))

    _log_tool_call(
        "find_symbols", start_time, symbol=symbol_name, result_count=len(response.symbols)
    )
    return response.model_dump(by_alias=True)


@mcp.tool(
    name="find_text",
    description="Literal whole-word text search with surrounding source lines.",
)
async def find_text(
    text: str = Field(..., description="Literal text to find (case-sensitive, whole word)."),
    search_path: str = Field(
        default="", description="Directory relative to the workspace root ('' for the root)."
    ),
    context_before: int = Field(default=DEFAULT_CONTEXT_LINES, description="Lines above each hit."),
    context_after: int = Field(default=DEFAULT_CONTEXT_LINES, description="Lines below each hit."),
    file_extension: Optional[str] = Field(
        default=None, description="';'-separated glob list, e.g. '*.h;*.cpp'."
    ),
) -> Dict[str, Any]:
    start_time = time.time()
    service = get_code_search_service()

    request = TextSearchRequest(
        text=text,
        search_path=search_path,
        context_before=context_before,
        context_after=context_after,
        file_extension=file_extension,
    )
    response = await service.find_text(request)

    _log_tool_call(
        "find_text",
        start_time,
        query=text,
        search_path=search_path or "(root)",
        result_count=len(response.results),
    )
    return response.model_dump(by_alias=True)


def main() -> None:
    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower() or "stdio"
    config = get_config()
    if config.workspace_root is None:
        raise SystemExit("WORKSPACE_ROOT must be set to run the MCP server")
    get_code_search_service().attach_workspace(config.workspace_root)

    if transport == "http":
        port = int(os.getenv("MCP_PORT", "8001"))
        host = os.getenv("MCP_HOST", "127.0.0.1")
        logger.info(
            "Starting MCP server",
            extra={"transport": transport, "host": host, "port": port},
        )
        mcp.run(transport=transport, host=host, port=port)
    else:
        logger.info("Starting MCP server", extra={"transport": transport})
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()
