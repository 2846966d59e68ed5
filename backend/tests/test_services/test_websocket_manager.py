"""Tests for WebSocketManager."""

import json

import pytest
from backend.utils.websocket_manager import WebSocketManager


class MockWebSocket:
    """Records accepted state and sent messages."""

    def __init__(self):
        self.accepted = False
        self.messages = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text):
        self.messages.append(json.loads(text))


class BrokenWebSocket(MockWebSocket):
    async def send_text(self, text):
        raise RuntimeError("connection closed")


@pytest.mark.asyncio
async def test_connect_and_disconnect():
    """Test connecting and disconnecting WebSocket."""
    manager = WebSocketManager()
    session_id = "test-session"
    ws = MockWebSocket()

    await manager.connect(ws, session_id)
    assert ws.accepted
    assert ws in manager.active_connections[session_id]

    manager.disconnect(session_id, ws)
    assert session_id not in manager.active_connections
    assert session_id not in manager.sequence_numbers


@pytest.mark.asyncio
async def test_send_event_no_connections():
    """Test sending event when no connections exist."""
    manager = WebSocketManager()

    # Should not raise error
    await manager.send_event("nonexistent-session", {"type": "test", "data": {}})


@pytest.mark.asyncio
async def test_sequence_numbers():
    """Test sequence number generation."""
    manager = WebSocketManager()
    session_id = "test-session"
    ws = MockWebSocket()
    await manager.connect(ws, session_id)

    for _ in range(5):
        await manager.send_event(session_id, {"type": "test", "data": {}})

    assert manager.sequence_numbers[session_id] == 5
    assert [m["data"]["seq"] for m in ws.messages] == [1, 2, 3, 4, 5]
    assert all(m["data"]["ts"] for m in ws.messages)


@pytest.mark.asyncio
async def test_send_graph_updated():
    """Test sending graph updated event."""
    manager = WebSocketManager()
    session_id = "test-session"
    ws = MockWebSocket()
    await manager.connect(ws, session_id)

    await manager.send_graph_updated(
        session_id,
        revision=3,
        dirty=True,
        view={"nodes": [], "edges": []},
        action="add_model",
    )

    message = ws.messages[0]
    assert message["type"] == "graph_updated"
    assert message["data"]["session_id"] == session_id
    assert message["data"]["revision"] == 3
    assert message["data"]["dirty"] is True
    assert message["data"]["action"] == "add_model"
    assert message["data"]["view"] == {"nodes": [], "edges": []}
    assert message["data"]["seq"] == 1


@pytest.mark.asyncio
async def test_send_session_saved():
    """Test sending session saved event."""
    manager = WebSocketManager()
    session_id = "test-session"
    ws = MockWebSocket()
    await manager.connect(ws, session_id)

    await manager.send_session_saved(session_id, project_id=7, message="Project 'Blog' created")

    message = ws.messages[0]
    assert message["type"] == "session_saved"
    assert message["data"]["project_id"] == 7


@pytest.mark.asyncio
async def test_failed_connection_is_dropped():
    """Test that a connection failing to send is removed."""
    manager = WebSocketManager()
    session_id = "test-session"
    good, broken = MockWebSocket(), BrokenWebSocket()
    await manager.connect(good, session_id)
    await manager.connect(broken, session_id)

    await manager.send_event(session_id, {"type": "test", "data": {}})

    assert len(good.messages) == 1
    assert manager.active_connections[session_id] == {good}
