"""Validation of project specifications before they are persisted.

Two passes, both reporting issues instead of raising:

* structural: pydantic document models mirroring the wire format (identifier
  patterns, required fields, numeric bounds, non-empty collections);
* semantic: graph consistency (unique names, foreign keys that resolve and
  mirror their target's type, relationship targets, reciprocal
  `back_populates` pairs, enum references).

Issues carry a dotted path such as `schema.models.0.columns.1.foreign_key`.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    PositiveInt,
    NonNegativeInt,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from schemaforge.ir.graph_utils import (
    FOREIGN_KEY_PATTERN,
    IDENTIFIER_PATTERN,
    SIMPLE_NAME_PATTERN,
    parse_foreign_key,
)
from schemaforge.ir.models.relation_type import inverse_uselist
from schemaforge.ir.models.spec_models import CascadeOption, ColumnTypeName, DBProvider
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)


class ValidationIssue(BaseModel):
    field: str
    message: str
    value: Any = None


def _pattern_text(pattern: "re.Pattern[str]") -> str:
    return pattern.pattern.strip("^$")


def _named(label: str, pattern: "re.Pattern[str]") -> AfterValidator:
    def check(value: str) -> str:
        if not value:
            raise ValueError(f"{label} is required")
        if not pattern.match(value):
            raise ValueError(f"{label} must match pattern {_pattern_text(pattern)}")
        return value

    return AfterValidator(check)


def _foreign_key(value: str) -> str:
    if not FOREIGN_KEY_PATTERN.match(value):
        raise ValueError("Foreign key must be in format 'tablename.column'")
    return value


ModelName = Annotated[str, _named("Model name", IDENTIFIER_PATTERN)]
TargetName = Annotated[str, _named("Target model", IDENTIFIER_PATTERN)]
EnumName = Annotated[str, _named("Enum name", IDENTIFIER_PATTERN)]
AssociationTableName = Annotated[str, _named("Association table name", IDENTIFIER_PATTERN)]
TableName = Annotated[str, _named("Table name", SIMPLE_NAME_PATTERN)]
ColumnName = Annotated[str, _named("Column name", SIMPLE_NAME_PATTERN)]
RelationshipName = Annotated[str, _named("Relationship name", SIMPLE_NAME_PATTERN)]
EnumValue = Annotated[str, _named("Enum value", SIMPLE_NAME_PATTERN)]
ForeignKeyRef = Annotated[str, AfterValidator(_foreign_key)]


# ---------------------------------------------------------------------------
# Structural document models
# ---------------------------------------------------------------------------


class ColumnTypeDocument(BaseModel):
    name: ColumnTypeName
    length: Optional[PositiveInt] = None
    precision: Optional[PositiveInt] = None
    scale: Optional[NonNegativeInt] = None
    enum_class: Optional[str] = None


class ColumnDocument(BaseModel):
    name: ColumnName
    type: ColumnTypeDocument
    primary_key: Optional[StrictBool] = None
    nullable: Optional[StrictBool] = None
    unique: Optional[StrictBool] = None
    index: Optional[StrictBool] = None
    autoincrement: Optional[StrictBool] = None
    default: Optional[Union[StrictBool, StrictInt, StrictFloat, StrictStr]] = None
    foreign_key: Optional[ForeignKeyRef] = None
    server_default: Optional[str] = None
    info: Optional[Dict[str, Any]] = None


class RelationshipDocument(BaseModel):
    name: RelationshipName
    target: TargetName
    back_populates: Optional[str] = None
    backref: Optional[str] = None
    secondary: Optional[str] = None
    remote_side: Optional[List[str]] = None
    cascade: Optional[List[CascadeOption]] = None
    uselist: Optional[StrictBool] = None
    order_by: Optional[str] = None


class ModelDocument(BaseModel):
    name: ModelName
    tablename: TableName
    columns: List[ColumnDocument]
    relationships: Optional[List[RelationshipDocument]] = None
    is_user: Optional[StrictBool] = None
    username_field: Optional[str] = None
    password_field: Optional[str] = None

    @field_validator("columns")
    @classmethod
    def _has_columns(cls, value: List[ColumnDocument]) -> List[ColumnDocument]:
        if not value:
            raise ValueError("Model must have at least one column")
        return value


class EnumDocument(BaseModel):
    name: EnumName
    values: List[EnumValue]

    @field_validator("values")
    @classmethod
    def _has_values(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("Enum must have at least one value")
        return value


class AssociationTableDocument(BaseModel):
    name: AssociationTableName
    tablename: TableName
    columns: List[ColumnDocument]

    @field_validator("columns")
    @classmethod
    def _has_columns(cls, value: List[ColumnDocument]) -> List[ColumnDocument]:
        if not value:
            raise ValueError("Association table must have at least one column")
        return value


class SchemaDocument(BaseModel):
    enums: Optional[List[EnumDocument]] = None
    association_tables: Optional[List[AssociationTableDocument]] = None
    models: List[ModelDocument]

    @field_validator("models")
    @classmethod
    def _has_models(cls, value: List[ModelDocument]) -> List[ModelDocument]:
        if not value:
            raise ValueError("At least one model is required")
        return value


def _required(label: str) -> AfterValidator:
    def check(value: str) -> str:
        if not value:
            raise ValueError(f"{label} is required")
        return value

    return AfterValidator(check)


class ProjectConfigDocument(BaseModel):
    title: Annotated[str, _required("Project title")]
    author: Optional[str] = None
    description: Optional[str] = None


class GitConfigDocument(BaseModel):
    username: Annotated[str, _required("Git username")]
    repository: Annotated[str, _required("Repository")]
    branch: Annotated[str, _required("Branch")]


class DatabaseConfigDocument(BaseModel):
    db_provider: DBProvider
    db_name: Annotated[str, _required("Database name")]
    db_host: Optional[str] = None
    db_port: Optional[PositiveInt] = None
    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_driver: Optional[str] = None
    db_options: Optional[str] = None
    db_connect_args: Optional[str] = None


class SecurityConfigDocument(BaseModel):
    secret_key: str
    algorithm: Annotated[str, _required("Algorithm")]

    @field_validator("secret_key")
    @classmethod
    def _long_enough(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError("Secret key must be at least 32 characters for security")
        return value


class TokenConfigDocument(BaseModel):
    access_token_expire_minutes: StrictInt
    refresh_token_expire_days: StrictInt

    @field_validator("access_token_expire_minutes")
    @classmethod
    def _access_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Access token expiry must be greater than 0")
        return value

    @field_validator("refresh_token_expire_days")
    @classmethod
    def _refresh_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Refresh token expiry must be greater than 0")
        return value


class ProjectSpecDocument(BaseModel):
    project: ProjectConfigDocument
    git: GitConfigDocument
    database: DatabaseConfigDocument
    security: SecurityConfigDocument
    token: TokenConfigDocument
    schema_definition: SchemaDocument = Field(alias="schema")


# ---------------------------------------------------------------------------
# Issue conversion
# ---------------------------------------------------------------------------

_VALUE_ERROR_PREFIX = "Value error, "


def _issues_from_error(exc: ValidationError, prefix: Sequence[Any] = ()) -> List[ValidationIssue]:
    issues = []
    for error in exc.errors():
        path = [*prefix, *error["loc"]]
        message = error["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        value = None if error["type"] == "missing" else error.get("input")
        issues.append(ValidationIssue(
            field=".".join(str(part) for part in path),
            message=message,
            value=value,
        ))
    return issues


def _validate_document(
    document: type, data: Any, prefix: Sequence[Any] = ()
) -> List[ValidationIssue]:
    try:
        document.model_validate(data)
    except ValidationError as exc:
        return _issues_from_error(exc, prefix)
    return []


def format_errors(issues: Sequence[ValidationIssue]) -> List[str]:
    """Render issues as "path: message" lines."""
    return [f"{issue.field}: {issue.message}" if issue.field else issue.message for issue in issues]


# ---------------------------------------------------------------------------
# Semantic pass
# ---------------------------------------------------------------------------


def _items(container: Mapping[str, Any], key: str) -> List[Tuple[int, Mapping[str, Any]]]:
    values = container.get(key)
    if not isinstance(values, list):
        return []
    return [(index, item) for index, item in enumerate(values) if isinstance(item, Mapping)]


def _type_signature(column_type: Any) -> Tuple[Any, Any, Any, Any]:
    if not isinstance(column_type, Mapping):
        return (None, None, None, None)
    return (
        column_type.get("name"),
        column_type.get("length"),
        column_type.get("precision"),
        column_type.get("scale"),
    )


def _check_duplicates(
    entries: List[Tuple[int, Mapping[str, Any]]],
    key: str,
    path: str,
    label: str,
    issues: List[ValidationIssue],
) -> None:
    seen: set = set()
    for index, entry in entries:
        value = entry.get(key)
        if not value:
            continue
        if value in seen:
            issues.append(ValidationIssue(
                field=f"{path}.{index}.{key}",
                message=f"Duplicate {label} '{value}'",
                value=value,
            ))
        seen.add(value)


def check_schema_consistency(schema: Mapping[str, Any], path: str = "schema") -> List[ValidationIssue]:
    """
    Semantic checks over a `schema` section.

    Tolerates structurally invalid input: entries that are not objects are
    skipped (the structural pass reports them).

    Args:
        schema: The `schema` section of a project specification
        path: Path prefix for reported issues

    Returns:
        List of ValidationIssue (empty if all checks pass)
    """
    issues: List[ValidationIssue] = []
    if not isinstance(schema, Mapping):
        return issues

    models = _items(schema, "models")
    enums = _items(schema, "enums")
    tables = _items(schema, "association_tables")

    models_by_name = {model.get("name"): model for _, model in models if model.get("name")}
    models_by_table = {model.get("tablename"): model for _, model in models if model.get("tablename")}
    enum_names = {enum.get("name") for _, enum in enums if enum.get("name")}

    # Check 1: names unique across the graph
    _check_duplicates(models, "name", f"{path}.models", "model name", issues)
    _check_duplicates(models, "tablename", f"{path}.models", "table name", issues)
    _check_duplicates(enums, "name", f"{path}.enums", "enum name", issues)
    for index, table in tables:
        tablename = table.get("tablename")
        if tablename and tablename in models_by_table:
            issues.append(ValidationIssue(
                field=f"{path}.association_tables.{index}.tablename",
                message=f"Table name '{tablename}' is already used by model '{models_by_table[tablename].get('name')}'",
                value=tablename,
            ))

    # Check 2: enum values distinct
    for index, enum in enums:
        values = enum.get("values")
        if not isinstance(values, list):
            continue
        seen_values: set = set()
        for value_index, value in enumerate(values):
            if value in seen_values:
                issues.append(ValidationIssue(
                    field=f"{path}.enums.{index}.values.{value_index}",
                    message=f"Duplicate enum value '{value}'",
                    value=value,
                ))
            seen_values.add(value)

    def check_columns(owner: Mapping[str, Any], owner_path: str) -> None:
        columns = _items(owner, "columns")
        _check_duplicates(columns, "name", f"{owner_path}.columns", "column name", issues)
        for column_index, column in columns:
            column_path = f"{owner_path}.columns.{column_index}"
            column_type = column.get("type") if isinstance(column.get("type"), Mapping) else {}

            # Check 3: enum columns name an existing enum
            enum_class = column_type.get("enum_class")
            if column_type.get("name") == ColumnTypeName.ENUM.value and not enum_class:
                issues.append(ValidationIssue(
                    field=f"{column_path}.type.enum_class",
                    message="Enum columns must name an enum class",
                    value=None,
                ))
            if enum_class and enum_class not in enum_names:
                issues.append(ValidationIssue(
                    field=f"{column_path}.type.enum_class",
                    message=f"Enum '{enum_class}' does not exist",
                    value=enum_class,
                ))

            # Check 4: foreign keys resolve and mirror the target type
            foreign_key = column.get("foreign_key")
            if not foreign_key:
                continue
            parsed = parse_foreign_key(foreign_key)
            if parsed is None:
                continue  # reported by the structural pass
            tablename, target_column_name = parsed
            target_model = models_by_table.get(tablename)
            if target_model is None:
                issues.append(ValidationIssue(
                    field=f"{column_path}.foreign_key",
                    message=f"Table '{tablename}' does not exist",
                    value=foreign_key,
                ))
                continue
            target_column = next(
                (c for _, c in _items(target_model, "columns") if c.get("name") == target_column_name),
                None,
            )
            if target_column is None:
                issues.append(ValidationIssue(
                    field=f"{column_path}.foreign_key",
                    message=f"Column '{target_column_name}' does not exist on table '{tablename}'",
                    value=foreign_key,
                ))
                continue
            if not (target_column.get("primary_key") or target_column.get("unique")):
                issues.append(ValidationIssue(
                    field=f"{column_path}.foreign_key",
                    message=f"'{foreign_key}' is neither a primary key nor a unique column",
                    value=foreign_key,
                ))
            if _type_signature(column.get("type")) != _type_signature(target_column.get("type")):
                issues.append(ValidationIssue(
                    field=f"{column_path}.type",
                    message=f"Type must match the referenced column '{foreign_key}'",
                    value=column.get("type"),
                ))

    for index, model in models:
        model_path = f"{path}.models.{index}"
        check_columns(model, model_path)

        relationships = _items(model, "relationships")
        _check_duplicates(relationships, "name", f"{model_path}.relationships", "relationship name", issues)

        for rel_index, rel in relationships:
            rel_path = f"{model_path}.relationships.{rel_index}"
            # Check 5: relationship targets exist
            target = models_by_name.get(rel.get("target"))
            if target is None:
                if rel.get("target"):
                    issues.append(ValidationIssue(
                        field=f"{rel_path}.target",
                        message=f"Model '{rel.get('target')}' does not exist",
                        value=rel.get("target"),
                    ))
                continue

            # Check 6: back_populates pairs point at each other with inverse uselist
            back_populates = rel.get("back_populates")
            if not back_populates:
                continue
            reverse = next(
                (r for _, r in _items(target, "relationships") if r.get("name") == back_populates),
                None,
            )
            if reverse is None:
                issues.append(ValidationIssue(
                    field=f"{rel_path}.back_populates",
                    message=f"Model '{target.get('name')}' has no relationship '{back_populates}'",
                    value=back_populates,
                ))
                continue
            if reverse.get("back_populates") != rel.get("name") or reverse.get("target") != model.get("name"):
                issues.append(ValidationIssue(
                    field=f"{rel_path}.back_populates",
                    message=(
                        f"Relationship '{target.get('name')}.{back_populates}' does not point back "
                        f"at '{model.get('name')}.{rel.get('name')}'"
                    ),
                    value=back_populates,
                ))
            elif reverse.get("uselist") != inverse_uselist(rel.get("uselist")):
                issues.append(ValidationIssue(
                    field=f"{rel_path}.uselist",
                    message=f"Cardinality does not mirror '{target.get('name')}.{back_populates}'",
                    value=rel.get("uselist"),
                ))

    for index, table in tables:
        check_columns(table, f"{path}.association_tables.{index}")

    return issues


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def validate_column(column: Mapping[str, Any]) -> List[ValidationIssue]:
    return _validate_document(ColumnDocument, column)


def validate_relationship(relationship: Mapping[str, Any]) -> List[ValidationIssue]:
    return _validate_document(RelationshipDocument, relationship)


def validate_model(model: Mapping[str, Any]) -> List[ValidationIssue]:
    return _validate_document(ModelDocument, model)


def validate_schema(schema: Mapping[str, Any]) -> List[ValidationIssue]:
    """Structural and semantic validation of a `schema` section."""
    issues = _validate_document(SchemaDocument, schema, prefix=("schema",))
    issues.extend(check_schema_consistency(schema))
    return issues


def validate_project_spec(spec: Mapping[str, Any]) -> List[ValidationIssue]:
    """
    Validate a complete project specification.

    Args:
        spec: Parsed specification (config sections, schema, optional _ui_metadata)

    Returns:
        List of ValidationIssue (empty if the specification is valid)
    """
    issues = _validate_document(ProjectSpecDocument, spec)
    if isinstance(spec, Mapping):
        issues.extend(check_schema_consistency(spec.get("schema")))
    if issues:
        logger.debug(f"Project specification has {len(issues)} issue(s)")
    return issues
