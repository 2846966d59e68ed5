"""Editor session state and lifecycle management."""

from typing import Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime, UTC
import uuid

from schemaforge.config.store import ConfigStore
from schemaforge.graph.store import EntityGraphStore, GraphState
from schemaforge.graph.synthesizer import RelationshipSynthesizer


@dataclass
class EditorSession:
    """One open editor: a graph store, its synthesizer and the configuration sections."""
    session_id: str
    store: EntityGraphStore
    synthesizer: RelationshipSynthesizer
    config: ConfigStore
    project_id: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    revision: int = 0

    def __post_init__(self):
        self.store.subscribe(self._on_graph_change)

    def _on_graph_change(self, state: GraphState) -> None:
        self.revision += 1


class SessionManager:
    """Manages editor sessions."""

    def __init__(self, config_defaults: Optional[Dict] = None, config_path: Optional[str] = None):
        self.sessions: Dict[str, EditorSession] = {}
        self._config_defaults = config_defaults
        self._config_path = config_path

    def _new_config(self) -> ConfigStore:
        if self._config_path:
            return ConfigStore.restore(self._config_path, defaults=self._config_defaults)
        return ConfigStore(defaults=self._config_defaults)

    def create_session(self, project_id: Optional[int] = None) -> EditorSession:
        """Create a new session with an empty graph."""
        session_id = str(uuid.uuid4())
        store = EntityGraphStore()
        session = EditorSession(
            session_id=session_id,
            store=store,
            synthesizer=RelationshipSynthesizer(store),
            config=self._new_config(),
            project_id=project_id,
        )
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[EditorSession]:
        """Get session by ID."""
        return self.sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Close a session. Returns False if it did not exist."""
        return self.sessions.pop(session_id, None) is not None
