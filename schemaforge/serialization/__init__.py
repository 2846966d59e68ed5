"""Project specification serialization."""

from .spec_serializer import (
    CONFIG_SECTIONS,
    ImportedSpec,
    SpecSerializer,
)

__all__ = ["CONFIG_SECTIONS", "ImportedSpec", "SpecSerializer"]
