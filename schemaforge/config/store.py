"""Editor configuration sections (project, git, database, security, token).

Defaults come from `config.yaml`. Each section is a pydantic model that keeps
unknown keys, so a configuration round-trips through the project
specification verbatim. When a persistence path is given every change is
written there as JSON; the last write wins.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from schemaforge.config.loader import get_config
from schemaforge.ir.models.spec_models import (
    DatabaseConfig,
    GitConfig,
    ProjectConfig,
    SecurityConfig,
    TokenConfig,
)
from schemaforge.utils.error_handling import ErrorContext, SpecFormatError
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)

SECTION_MODELS: Dict[str, Type[BaseModel]] = {
    "project": ProjectConfig,
    "git": GitConfig,
    "database": DatabaseConfig,
    "security": SecurityConfig,
    "token": TokenConfig,
}


def load_section_defaults() -> Dict[str, Dict[str, Any]]:
    """Section defaults from the packaged config.yaml."""
    defaults = get_config("defaults") or {}
    return {name: dict(defaults.get(name) or {}) for name in SECTION_MODELS}


class ConfigStore:
    """Holds the five configuration sections."""

    def __init__(
        self,
        defaults: Optional[Mapping[str, Mapping[str, Any]]] = None,
        persist_path: Optional[Union[str, Path]] = None,
    ):
        self._defaults = {
            name: dict((defaults if defaults is not None else load_section_defaults()).get(name) or {})
            for name in SECTION_MODELS
        }
        self.persist_path = Path(persist_path) if persist_path is not None else None
        self._sections: Dict[str, BaseModel] = self._default_sections()

    @classmethod
    def restore(
        cls,
        persist_path: Union[str, Path],
        defaults: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> "ConfigStore":
        """
        Create a store from its persisted JSON file, falling back to defaults.

        Args:
            persist_path: JSON file written by a previous store
            defaults: Optional section defaults (otherwise from config.yaml)

        Returns:
            ConfigStore that keeps persisting to the same file
        """
        store = cls(defaults=defaults, persist_path=persist_path)
        path = Path(persist_path)
        if path.exists():
            try:
                saved = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                logger.warning(f"Ignoring unreadable config file {path}: {exc}")
                return store
            if isinstance(saved, dict):
                try:
                    store.replace_sections(store.validate_sections(saved), persist=False)
                except SpecFormatError as exc:
                    logger.warning(f"Ignoring invalid config file {path}: {exc.message}")
                    return store
                logger.info(f"Restored configuration from {path}")
        return store

    def _default_sections(self) -> Dict[str, BaseModel]:
        return {
            name: model.model_validate(self._defaults[name])
            for name, model in SECTION_MODELS.items()
        }

    def _section_model(self, name: str) -> Type[BaseModel]:
        if name not in SECTION_MODELS:
            raise KeyError(f"Unknown configuration section '{name}'")
        return SECTION_MODELS[name]

    def _persist(self) -> None:
        if self.persist_path is None:
            return
        self.persist_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.persist_path.with_suffix(self.persist_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self.sections(), indent=2), encoding="utf-8")
        tmp_path.replace(self.persist_path)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get_section(self, name: str) -> BaseModel:
        self._section_model(name)
        return self._sections[name]

    @property
    def project(self) -> ProjectConfig:
        return self._sections["project"]

    @property
    def git(self) -> GitConfig:
        return self._sections["git"]

    @property
    def database(self) -> DatabaseConfig:
        return self._sections["database"]

    @property
    def security(self) -> SecurityConfig:
        return self._sections["security"]

    @property
    def token(self) -> TokenConfig:
        return self._sections["token"]

    def sections(self) -> Dict[str, Dict[str, Any]]:
        """All sections as JSON-ready dictionaries, in wire order."""
        return {
            name: section.model_dump(mode="json", exclude_none=True)
            for name, section in self._sections.items()
        }

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_section(self, name: str, **partial: Any) -> BaseModel:
        """
        Merge a partial update into one section.

        Args:
            name: Section name
            **partial: Keys to overwrite

        Returns:
            The updated section

        Raises:
            KeyError: Unknown section name
            pydantic.ValidationError: The merged section has the wrong types
        """
        model = self._section_model(name)
        merged = {**self._sections[name].model_dump(), **partial}
        self._sections[name] = model.model_validate(merged)
        self._persist()
        return self._sections[name]

    def validate_sections(self, sections: Mapping[str, Any]) -> Dict[str, BaseModel]:
        """
        Build section models for the known sections in `sections` without applying them.

        Args:
            sections: Raw sections, e.g. from an imported spec; unknown names are ignored

        Returns:
            Section name -> validated section, ready for `replace_sections`

        Raises:
            SpecFormatError: A section is not an object or has the wrong types
        """
        validated: Dict[str, BaseModel] = {}
        for name, values in sections.items():
            if name not in SECTION_MODELS:
                continue
            context = ErrorContext(operation="load_config", additional_context={"section": name})
            if not isinstance(values, Mapping):
                raise SpecFormatError(f"Configuration section '{name}' must be an object", context)
            try:
                validated[name] = SECTION_MODELS[name].model_validate(dict(values))
            except ValidationError as exc:
                first = exc.errors()[0]
                field_path = ".".join(str(part) for part in (name, *first["loc"]))
                raise SpecFormatError(
                    f"Invalid configuration value {field_path}: {first['msg']}",
                    context,
                    original_exception=exc,
                ) from exc
        return validated

    def replace_sections(self, validated: Mapping[str, BaseModel], persist: bool = True) -> None:
        """Swap in sections produced by `validate_sections`, all at once."""
        self._sections.update(validated)
        if persist:
            self._persist()

    def load(self, sections: Mapping[str, Any]) -> None:
        """
        Replace the sections present in `sections` (e.g. from an imported spec).

        Either every known section is applied or none is.

        Raises:
            SpecFormatError: A section is not an object or has the wrong types
        """
        self.replace_sections(self.validate_sections(sections))

    def reset_to_defaults(self) -> None:
        self._sections = self._default_sections()
        self._persist()
        logger.info("Configuration reset to defaults")
