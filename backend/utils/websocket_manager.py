"""WebSocket connection management."""

from typing import Dict, Set, Optional, Any
from fastapi import WebSocket
from datetime import datetime, UTC
import json
import logging

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Manages WebSocket connections per editor session."""

    def __init__(self):
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        self.sequence_numbers: Dict[str, int] = {}

    async def connect(self, websocket: WebSocket, session_id: str):
        """Accept and register a WebSocket connection."""
        await websocket.accept()

        if session_id not in self.active_connections:
            self.active_connections[session_id] = set()
            self.sequence_numbers[session_id] = 0

        self.active_connections[session_id].add(websocket)
        logger.info(
            f"WebSocket connected for session {session_id} "
            f"(total connections: {len(self.active_connections[session_id])})"
        )

    def disconnect(self, session_id: str, websocket: Optional[WebSocket] = None):
        """Remove connection(s) for session_id."""
        if session_id not in self.active_connections:
            logger.warning(f"Attempted to disconnect session {session_id} but no connections found")
            return

        if websocket:
            self.active_connections[session_id].discard(websocket)
        else:
            self.active_connections[session_id].clear()

        if not self.active_connections[session_id]:
            logger.info(f"No more connections for session {session_id}, cleaning up")
            del self.active_connections[session_id]
            del self.sequence_numbers[session_id]

    def _get_next_seq(self, session_id: str) -> int:
        """Get next sequence number for session_id."""
        if session_id not in self.sequence_numbers:
            self.sequence_numbers[session_id] = 0
        self.sequence_numbers[session_id] += 1
        return self.sequence_numbers[session_id]

    async def send_event(self, session_id: str, event: dict):
        """Send event to all connections for session_id."""
        event_type = event.get("type", "unknown")
        if session_id not in self.active_connections:
            logger.debug(f"No active connections for session {session_id}, dropping event {event_type}")
            return

        # Add sequence number and timestamp
        if "data" in event and isinstance(event["data"], dict):
            event["data"]["seq"] = self._get_next_seq(session_id)
            if not event["data"].get("ts"):
                event["data"]["ts"] = datetime.now(UTC).isoformat()
            if isinstance(event["data"].get("ts"), datetime):
                event["data"]["ts"] = event["data"]["ts"].isoformat()

        message = json.dumps(event)

        disconnected = set()
        sent_count = 0
        for websocket in self.active_connections[session_id]:
            try:
                await websocket.send_text(message)
                sent_count += 1
            except Exception as e:
                logger.error(f"Error sending WebSocket message for session {session_id}: {e}")
                disconnected.add(websocket)

        for ws in disconnected:
            self.active_connections[session_id].discard(ws)

        if sent_count > 0:
            logger.debug(f"Sent '{event_type}' to {sent_count} connection(s) for session {session_id}")

    async def send_graph_updated(
        self,
        session_id: str,
        revision: int,
        dirty: bool,
        view: Dict[str, Any],
        action: str
    ):
        """Send graph updated event."""
        from backend.models.websocket_events import GraphUpdatedEvent

        event = GraphUpdatedEvent(
            data={
                "session_id": session_id,
                "seq": 0,  # Will be set by send_event
                "ts": None,
                "revision": revision,
                "dirty": dirty,
                "action": action,
                "view": view,
            }
        )
        await self.send_event(session_id, event.model_dump(mode="json"))

    async def send_session_saved(self, session_id: str, project_id: int, message: str):
        """Send session saved event."""
        from backend.models.websocket_events import SessionSavedEvent

        event = SessionSavedEvent(
            data={
                "session_id": session_id,
                "seq": 0,  # Will be set by send_event
                "ts": None,
                "project_id": project_id,
                "message": message,
            }
        )
        await self.send_event(session_id, event.model_dump(mode="json"))
