"""Standardized error handling utilities.

Provides consistent error handling patterns across the codebase.
"""

from .handlers import (
    ErrorContext,
    SchemaForgeError,
    SynthesisError,
    ReferentialError,
    SpecFormatError,
    log_error_with_context,
    create_error_response,
    get_error_message,
)

__all__ = [
    "ErrorContext",
    "SchemaForgeError",
    "SynthesisError",
    "ReferentialError",
    "SpecFormatError",
    "log_error_with_context",
    "create_error_response",
    "get_error_message",
]
