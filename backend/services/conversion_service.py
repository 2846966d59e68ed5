"""Conversion service - graph <-> project specification for editor sessions."""

from typing import Dict, Any

from schemaforge.layout.adapter import GraphView, to_graph_view
from schemaforge.serialization.spec_serializer import ImportedSpec, SpecSerializer
from backend.utils.session_manager import EditorSession


class ConversionService:
    """Exports sessions to specifications and loads specifications into sessions."""

    def __init__(self, serializer: SpecSerializer = None):
        self.serializer = serializer or SpecSerializer()

    def export_session(self, session: EditorSession) -> Dict[str, Any]:
        """Project specification for the session's graph and configuration."""
        return self.serializer.export_spec(session.store.state, session.config.sections())

    def export_session_json(self, session: EditorSession) -> str:
        return self.serializer.export_json(session.store.state, session.config.sections())

    def load_spec(self, session: EditorSession, spec: Dict[str, Any]) -> ImportedSpec:
        """Replace the session's graph (and the config sections present) with a specification.

        The schema and every config section are validated before anything is
        replaced.

        Raises:
            SpecFormatError: The schema or a config section is malformed;
                the session is left untouched
        """
        imported = self.serializer.import_spec(spec)
        sections = session.config.validate_sections(imported.config)
        session.store.load_graph(imported.models, imported.enums, imported.association_tables)
        if sections:
            session.config.replace_sections(sections)
        return imported

    def session_view(self, session: EditorSession) -> GraphView:
        """Node/edge view of the session's graph."""
        return to_graph_view(session.store.models, session.store.enums)
