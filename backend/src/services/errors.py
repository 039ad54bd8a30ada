"""Error taxonomy for the code search service."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class CodeSearchError(Exception):
    """Base class for failures that abort a whole search operation."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UsageError(CodeSearchError):
    """Operation invoked without a workspace or with a malformed request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "usage_error"


class NoWorkspaceError(UsageError):
    """No workspace is attached to the host integration."""

    status_code = status.HTTP_409_CONFLICT
    error = "no_workspace"

    def __init__(self, message: str = "No workspace is open", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class HostUnavailableError(CodeSearchError):
    """The host's index or find engine could not be reached or reported failure."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "host_unavailable"


class ResolutionGap(CodeSearchError):
    """A single candidate hit could not be resolved.

    Orchestrators absorb this per candidate; it never reaches the caller.
    """

    error = "resolution_gap"


__all__ = [
    "CodeSearchError",
    "UsageError",
    "NoWorkspaceError",
    "HostUnavailableError",
    "ResolutionGap",
]
