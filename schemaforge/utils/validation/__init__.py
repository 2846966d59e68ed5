"""Validation utilities for schemaforge."""

from .spec_validation import (
    ValidationIssue,
    validate_project_spec,
    validate_schema,
    validate_model,
    validate_column,
    validate_relationship,
    check_schema_consistency,
    format_errors,
)

__all__ = [
    "ValidationIssue",
    "validate_project_spec",
    "validate_schema",
    "validate_model",
    "validate_column",
    "validate_relationship",
    "check_schema_consistency",
    "format_errors",
]
