"""FastAPI middleware for error handling."""

from .error_handlers import (
    code_search_exception_handler,
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "code_search_exception_handler",
    "internal_exception_handler",
]
