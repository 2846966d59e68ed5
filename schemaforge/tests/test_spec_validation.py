"""Deterministic unit tests: project specification validation."""

import copy
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.utils.validation import (
    check_schema_consistency,
    format_errors,
    validate_column,
    validate_model,
    validate_project_spec,
    validate_relationship,
    validate_schema,
)


def _pk():
    return {"name": "id", "type": {"name": "integer"}, "primary_key": True}


VALID_SCHEMA = {
    "models": [
        {
            "name": "User",
            "tablename": "users",
            "columns": [_pk(), {"name": "email", "type": {"name": "string", "length": 255}, "unique": True}],
            "relationships": [
                {"name": "posts", "target": "Post", "back_populates": "author", "uselist": True},
            ],
        },
        {
            "name": "Post",
            "tablename": "posts",
            "columns": [
                _pk(),
                {"name": "author_id", "type": {"name": "integer"}, "foreign_key": "users.id"},
                {"name": "status", "type": {"name": "enum", "enum_class": "Status"}},
            ],
            "relationships": [
                {"name": "author", "target": "User", "back_populates": "posts", "uselist": False},
            ],
        },
    ],
    "enums": [{"name": "Status", "values": ["draft", "published"]}],
}

VALID_SPEC = {
    "project": {"title": "Blog", "author": "", "description": ""},
    "git": {"username": "octo", "repository": "blog", "branch": "main"},
    "database": {"db_provider": "postgresql", "db_name": "blog", "db_port": 5432},
    "security": {"secret_key": "x" * 32, "algorithm": "HS256"},
    "token": {"access_token_expire_minutes": 30, "refresh_token_expire_days": 7},
    "schema": VALID_SCHEMA,
}


def _schema():
    return copy.deepcopy(VALID_SCHEMA)


def _fields(issues):
    return {issue.field for issue in issues}


def _messages(issues):
    return [issue.message for issue in issues]


class TestStructural:
    """Structural checks on single documents."""

    def test_valid_documents(self):
        assert validate_schema(VALID_SCHEMA) == []
        assert validate_project_spec(VALID_SPEC) == []

    @pytest.mark.parametrize(
        "name, message",
        [
            ("", "Column name is required"),
            ("user-id", "Column name must match pattern [A-Za-z0-9_]+"),
        ],
    )
    def test_column_names(self, name, message):
        issues = validate_column({"name": name, "type": {"name": "integer"}})
        assert issues[0].field == "name"
        assert issues[0].message == message

    def test_foreign_key_format(self):
        issues = validate_column({"name": "user_id", "type": {"name": "integer"}, "foreign_key": "users"})
        assert _messages(issues) == ["Foreign key must be in format 'tablename.column'"]

    def test_unknown_column_type(self):
        issues = validate_column({"name": "x", "type": {"name": "blob"}})
        assert _fields(issues) == {"type.name"}

    def test_relationship_requires_target(self):
        issues = validate_relationship({"name": "posts", "target": ""})
        assert _messages(issues) == ["Target model is required"]

    def test_model_requires_columns(self):
        issues = validate_model({"name": "User", "tablename": "users", "columns": []})
        assert _messages(issues) == ["Model must have at least one column"]

    def test_schema_requires_models(self):
        issues = validate_schema({"models": []})
        assert issues[0].field == "schema.models"
        assert issues[0].message == "At least one model is required"

    def test_config_section_messages(self):
        spec = copy.deepcopy(VALID_SPEC)
        spec["security"]["secret_key"] = "short"
        spec["token"]["refresh_token_expire_days"] = 0
        spec["git"]["username"] = ""

        messages = format_errors(validate_project_spec(spec))

        assert "security.secret_key: Secret key must be at least 32 characters for security" in messages
        assert "token.refresh_token_expire_days: Refresh token expiry must be greater than 0" in messages
        assert "git.username: Git username is required" in messages

    def test_missing_sections(self):
        issues = validate_project_spec({"schema": VALID_SCHEMA})
        assert {"project", "git", "database", "security", "token"} <= _fields(issues)


class TestConsistency:
    """Semantic checks across the schema."""

    def test_duplicate_names(self):
        schema = _schema()
        schema["models"].append(copy.deepcopy(schema["models"][1]))
        schema["enums"][0]["values"].append("draft")

        messages = _messages(check_schema_consistency(schema))

        assert "Duplicate model name 'Post'" in messages
        assert "Duplicate table name 'posts'" in messages
        assert "Duplicate enum value 'draft'" in messages

    def test_association_table_clash(self):
        schema = _schema()
        schema["association_tables"] = [{"name": "PostLink", "tablename": "posts", "columns": [_pk()]}]

        issues = check_schema_consistency(schema)

        assert _fields(issues) == {"schema.association_tables.0.tablename"}

    def test_enum_columns(self):
        schema = _schema()
        schema["models"][1]["columns"][2]["type"]["enum_class"] = "Missing"
        schema["models"][1]["columns"].append({"name": "kind", "type": {"name": "enum"}})

        messages = _messages(check_schema_consistency(schema))

        assert "Enum 'Missing' does not exist" in messages
        assert "Enum columns must name an enum class" in messages

    @pytest.mark.parametrize(
        "foreign_key, message",
        [
            ("accounts.id", "Table 'accounts' does not exist"),
            ("users.name", "Column 'name' does not exist on table 'users'"),
        ],
    )
    def test_unresolved_foreign_keys(self, foreign_key, message):
        schema = _schema()
        schema["models"][1]["columns"][1]["foreign_key"] = foreign_key

        issues = check_schema_consistency(schema)

        assert [(i.field, i.message) for i in issues] == [("schema.models.1.columns.1.foreign_key", message)]

    def test_foreign_key_to_non_unique_column(self):
        schema = _schema()
        schema["models"][0]["columns"][1]["unique"] = None
        schema["models"][1]["columns"][1]["foreign_key"] = "users.email"
        schema["models"][1]["columns"][1]["type"] = {"name": "string", "length": 255}

        messages = _messages(check_schema_consistency(schema))

        assert messages == ["'users.email' is neither a primary key nor a unique column"]

    def test_foreign_key_type_must_mirror(self):
        schema = _schema()
        schema["models"][1]["columns"][1]["type"] = {"name": "string"}

        issues = check_schema_consistency(schema)

        assert _fields(issues) == {"schema.models.1.columns.1.type"}

    def test_relationship_target_must_exist(self):
        schema = _schema()
        schema["models"][1]["relationships"].append({"name": "tags", "target": "Tag"})

        assert _messages(check_schema_consistency(schema)) == ["Model 'Tag' does not exist"]

    def test_back_populates_must_point_back(self):
        schema = _schema()
        schema["models"][0]["relationships"][0]["back_populates"] = "writer"

        messages = _messages(check_schema_consistency(schema))

        assert "Model 'Post' has no relationship 'writer'" in messages
        assert "Relationship 'User.posts' does not point back at 'Post.author'" in messages

    def test_cardinality_must_mirror(self):
        schema = _schema()
        schema["models"][1]["relationships"][0]["uselist"] = True

        issues = check_schema_consistency(schema)

        assert _fields(issues) == {"schema.models.0.relationships.0.uselist", "schema.models.1.relationships.0.uselist"}

    def test_tolerates_malformed_input(self):
        assert check_schema_consistency(None) == []
        assert check_schema_consistency({"models": ["not a model", {"name": "A"}]}) == []
