"""WebSocket handler for real-time graph updates."""

import logging
from fastapi import WebSocket, WebSocketDisconnect, Depends
from backend.dependencies import get_websocket_manager, get_session_manager
from backend.utils.websocket_manager import WebSocketManager
from backend.utils.session_manager import SessionManager

logger = logging.getLogger(__name__)


async def websocket_endpoint(
    websocket: WebSocket,
    session_id: str,
    ws_manager: WebSocketManager = Depends(get_websocket_manager),
    session_manager: SessionManager = Depends(get_session_manager)
):
    """
    WebSocket endpoint for real-time updates.

    Client connects with session_id, receives:
    - graph_updated events (after every committed change, with the node/edge view)
    - session_saved events (when the session is saved as a project)
    - error events (unknown session)
    """
    await ws_manager.connect(websocket, session_id)

    try:
        session = session_manager.get_session(session_id)
        if not session:
            logger.warning(f"Session {session_id} not found, sending error and disconnecting")
            await websocket.send_json({
                "type": "error",
                "data": {
                    "message": "Session not found",
                    "error_type": "session_not_found"
                }
            })
            return

        await websocket.send_json({
            "type": "connected",
            "data": {
                "session_id": session_id,
                "revision": session.revision,
                "message": "WebSocket connection established"
            }
        })

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"Ignoring client message for session {session_id}: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected (session {session_id})")
    except Exception as e:
        logger.error(f"Error in WebSocket endpoint (session {session_id}): {e}")
        logger.exception("Full traceback:")
    finally:
        ws_manager.disconnect(session_id, websocket)
