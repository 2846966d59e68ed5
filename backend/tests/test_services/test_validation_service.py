"""Tests for ValidationService."""

import pytest
from backend.services.validation_service import ValidationService


@pytest.mark.asyncio
async def test_validate_valid_spec(sample_spec):
    """Test validating a complete, valid specification."""
    service = ValidationService()
    errors = await service.validate_spec(sample_spec)
    assert errors == []


@pytest.mark.asyncio
async def test_validate_spec_reports_paths(sample_spec):
    """Test that issues carry dotted field paths and values."""
    service = ValidationService()
    sample_spec["security"]["secret_key"] = "short"
    sample_spec["schema"]["models"][1]["columns"][1]["foreign_key"] = "accounts.id"

    errors = await service.validate_spec(sample_spec)

    by_field = {error.field: error for error in errors}
    assert by_field["security.secret_key"].message == "Secret key must be at least 32 characters for security"
    assert by_field["security.secret_key"].value == "short"
    assert by_field["schema.models.1.columns.1.foreign_key"].message == "Table 'accounts' does not exist"


@pytest.mark.asyncio
async def test_validate_schema_only_ignores_config(sample_spec):
    """Test that schema-only validation skips the config sections."""
    service = ValidationService()
    del sample_spec["git"]
    sample_spec["security"] = {}

    assert await service.validate_schema_only(sample_spec) == []


@pytest.mark.asyncio
async def test_validate_schema_only_missing_schema():
    """Test schema-only validation without a schema section."""
    service = ValidationService()
    errors = await service.validate_schema_only({})
    assert [error.field for error in errors] == ["schema.models"]
