"""Service layer for search orchestration and host integration."""

from .affinity import AffinitySession, HostAffinity
from .code_search import CodeSearchService, get_code_search_service, reset_code_search_service
from .config import AppConfig, get_config, reload_config
from .context_window import extract_context, window_bounds
from .errors import (
    CodeSearchError,
    HostUnavailableError,
    NoWorkspaceError,
    ResolutionGap,
    UsageError,
)
from .listing_parser import parse_listing, parse_listing_line
from .symbol_search import SymbolSearchService
from .text_search import TextSearchService
from .workspace_host import LocalWorkspaceHost

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "HostAffinity",
    "AffinitySession",
    "CodeSearchService",
    "get_code_search_service",
    "reset_code_search_service",
    "SymbolSearchService",
    "TextSearchService",
    "LocalWorkspaceHost",
    "parse_listing",
    "parse_listing_line",
    "extract_context",
    "window_bounds",
    "CodeSearchError",
    "UsageError",
    "NoWorkspaceError",
    "HostUnavailableError",
    "ResolutionGap",
]
