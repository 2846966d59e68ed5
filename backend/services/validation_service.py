"""Validation service - deterministic specification validation."""

from typing import List, Dict, Any

from schemaforge.utils.validation import (
    ValidationIssue,
    validate_project_spec,
    validate_schema,
)
from backend.models.responses import ValidationError


def _to_response(issues: List[ValidationIssue]) -> List[ValidationError]:
    return [
        ValidationError(field=issue.field, message=issue.message, value=issue.value)
        for issue in issues
    ]


class ValidationService:
    """Deterministic specification validation."""

    async def validate_spec(self, spec: Dict[str, Any]) -> List[ValidationError]:
        """Validate a complete project specification (config sections and schema)."""
        return _to_response(validate_project_spec(spec))

    async def validate_schema_only(self, spec: Dict[str, Any]) -> List[ValidationError]:
        """Validate only the schema section (config sections may still be incomplete)."""
        return _to_response(validate_schema(spec.get("schema") or {}))
