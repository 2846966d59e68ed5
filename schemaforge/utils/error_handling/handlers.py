"""Standardized error handling for graph operations.

Provides the exception hierarchy raised by the synthesizer and the serializer,
plus consistent error logging and error response creation.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
import traceback

from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Context information for error handling."""
    operation: str
    model_id: Optional[str] = None
    model_name: Optional[str] = None
    column_name: Optional[str] = None
    relationship_name: Optional[str] = None
    additional_context: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class SchemaForgeError(Exception):
    """Base error for refused graph operations."""
    message: str
    context: Optional[ErrorContext] = None
    original_exception: Optional[Exception] = None
    error_type: str = "schemaforge_error"

    def __str__(self) -> str:
        if self.context is None:
            return self.message
        return f"[{self.context.operation}] {self.message}"


@dataclass(eq=False)
class SynthesisError(SchemaForgeError):
    """An editor intent was refused; nothing was written."""
    error_type: str = "synthesis_error"


@dataclass(eq=False)
class ReferentialError(SynthesisError):
    """An intent referenced a model, column or table that does not resolve."""
    error_type: str = "referential_error"


@dataclass(eq=False)
class SpecFormatError(SchemaForgeError):
    """A project specification could not be parsed into a graph."""
    error_type: str = "spec_format_error"


def log_error_with_context(
    error: Exception,
    context: ErrorContext,
    level: str = "error"
) -> None:
    """
    Log error with full context information.

    Args:
        error: The exception that occurred
        context: Error context information
        level: Log level ("error", "warning", "critical")
    """
    log_msg_parts = [f"Error in {context.operation}"]

    if context.model_name or context.model_id:
        log_msg_parts.append(f"Model: {context.model_name or context.model_id}")
    if context.column_name:
        log_msg_parts.append(f"Column: {context.column_name}")
    if context.relationship_name:
        log_msg_parts.append(f"Relationship: {context.relationship_name}")

    log_msg = " | ".join(log_msg_parts)

    if level == "critical":
        logger.critical(f"{log_msg}: {error}", exc_info=True)
    elif level == "warning":
        logger.warning(f"{log_msg}: {error}")
    else:
        logger.error(f"{log_msg}: {error}", exc_info=True)

    if context.additional_context:
        logger.debug(f"Additional context: {context.additional_context}")


def create_error_response(
    error: Exception,
    context: Optional[ErrorContext] = None,
    include_traceback: bool = False
) -> Dict[str, Any]:
    """
    Create standardized error response dictionary.

    Args:
        error: The exception that occurred
        context: Error context information; taken from the error when omitted
        include_traceback: If True, attach the (truncated) traceback

    Returns:
        Dictionary with error information
    """
    if context is None and isinstance(error, SchemaForgeError):
        context = error.context

    error_response: Dict[str, Any] = {
        "success": False,
        "error": {
            "type": type(error).__name__,
            "message": error.message if isinstance(error, SchemaForgeError) else str(error),
            "timestamp": datetime.now().isoformat(),
        }
    }
    if isinstance(error, SchemaForgeError):
        error_response["error"]["error_type"] = error.error_type

    if context is not None:
        error_response["error"]["operation"] = context.operation
        if context.model_id:
            error_response["error"]["model_id"] = context.model_id
        if context.model_name:
            error_response["error"]["model_name"] = context.model_name
        if context.column_name:
            error_response["error"]["column_name"] = context.column_name
        if context.relationship_name:
            error_response["error"]["relationship_name"] = context.relationship_name
        if context.additional_context:
            error_response["error"]["additional_context"] = context.additional_context

    if include_traceback:
        tb_str = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        # Truncate to last 500 chars to avoid huge error responses
        error_response["error"]["traceback"] = tb_str[-500:] if len(tb_str) > 500 else tb_str

    return error_response


def get_error_message(error: Any, default_message: str = "An unexpected error occurred") -> str:
    """
    Extract a human-readable message from a persistence failure.

    A server-supplied `detail` wins (an HTTPException, or an HTTP response
    carrying a JSON body with "detail"); otherwise the exception text; otherwise
    the default message.

    Args:
        error: Exception (or error payload) raised by the persistence layer
        default_message: Fallback when nothing better is available

    Returns:
        Message suitable for showing to the user
    """
    detail = getattr(error, "detail", None)
    if isinstance(detail, str) and detail:
        return detail

    response = getattr(error, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return body["detail"]

    if isinstance(error, dict) and isinstance(error.get("detail"), str):
        return error["detail"]

    if isinstance(error, SchemaForgeError):
        return error.message
    if isinstance(error, Exception) and str(error):
        return str(error)
    return default_message
