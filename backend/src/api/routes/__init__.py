"""HTTP API route handlers."""

from . import search, system, workspace

__all__ = ["search", "system", "workspace"]
