"""Unit tests for error handling utilities."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.utils.error_handling import (
    ErrorContext,
    ReferentialError,
    SchemaForgeError,
    SynthesisError,
    create_error_response,
    get_error_message,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_error_context(self):
        """Test creating error context."""
        context = ErrorContext(operation="save_column", model_name="Post", column_name="author_id")

        assert context.operation == "save_column"
        assert context.model_name == "Post"
        assert context.relationship_name is None
        assert context.additional_context == {}


class TestSchemaForgeError:
    """Test the exception hierarchy."""

    def test_str_includes_operation(self):
        error = SynthesisError("Refused", ErrorContext(operation="save_column"))
        assert str(error) == "[save_column] Refused"
        assert str(SchemaForgeError("Plain")) == "Plain"

    def test_hierarchy_and_error_types(self):
        error = ReferentialError("Unknown table")
        assert isinstance(error, SynthesisError)
        assert error.error_type == "referential_error"
        assert SynthesisError("x").error_type == "synthesis_error"


class TestCreateErrorResponse:
    """Test create_error_response."""

    def test_context_taken_from_error(self):
        error = ReferentialError(
            "Unknown table",
            ErrorContext(operation="save_column", model_id="abc", column_name="author_id"),
        )

        response = create_error_response(error)

        assert response["success"] is False
        assert response["error"]["type"] == "ReferentialError"
        assert response["error"]["message"] == "Unknown table"
        assert response["error"]["error_type"] == "referential_error"
        assert response["error"]["operation"] == "save_column"
        assert response["error"]["column_name"] == "author_id"
        assert "traceback" not in response["error"]

    def test_plain_exception_with_traceback(self):
        try:
            raise ValueError("boom")
        except ValueError as e:
            response = create_error_response(e, ErrorContext(operation="load"), include_traceback=True)

        assert response["error"]["message"] == "boom"
        assert "ValueError" in response["error"]["traceback"]


class TestGetErrorMessage:
    """Test get_error_message."""

    def test_detail_attribute_wins(self):
        class HTTPError(Exception):
            detail = "Project not found"

        assert get_error_message(HTTPError("ignored")) == "Project not found"

    def test_response_body_detail(self):
        class Response:
            def json(self):
                return {"detail": "Schema is invalid"}

        class ResponseError(Exception):
            response = Response()

        assert get_error_message(ResponseError()) == "Schema is invalid"

    def test_fallbacks(self):
        assert get_error_message({"detail": "From payload"}) == "From payload"
        assert get_error_message(SynthesisError("Refused", ErrorContext(operation="x"))) == "Refused"
        assert get_error_message(RuntimeError("oops")) == "oops"
        assert get_error_message(RuntimeError(), "Save failed") == "Save failed"
