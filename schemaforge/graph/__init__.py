"""Entity graph store and relationship synthesis."""

from .store import (
    EntityGraphStore,
    GraphState,
    MutationStatus,
    to_position,
)
from .synthesizer import (
    ColumnSaveIntent,
    RelationshipIntent,
    ColumnWrite,
    RelationshipWrite,
    SynthesisResult,
    RelationshipSynthesizer,
    plan_column_save,
    plan_relationship,
    apply_synthesis,
)
from .sample_data import (
    new_model_defaults,
    new_enum_defaults,
    load_sample_data,
)

__all__ = [
    "EntityGraphStore",
    "GraphState",
    "MutationStatus",
    "to_position",
    "ColumnSaveIntent",
    "RelationshipIntent",
    "ColumnWrite",
    "RelationshipWrite",
    "SynthesisResult",
    "RelationshipSynthesizer",
    "plan_column_save",
    "plan_relationship",
    "apply_synthesis",
    "new_model_defaults",
    "new_enum_defaults",
    "load_sample_data",
]
