"""WebSocket endpoint streaming live session state.

On connect the client receives the current snapshot as a ``state`` message,
then one JSON message per ``SessionEvent`` (state changes and ``navigate``
signals). Anything the client sends is ignored; the connection closes when
the client disconnects.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from whisperdesk.core.models import SessionEvent, SessionEventType
from whisperdesk.services import orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/session")
async def session_stream(websocket: WebSocket) -> None:
    """Forward orchestrator events to one WebSocket client."""
    session = orchestrator.get_active_orchestrator()
    await websocket.accept()
    if session is None:
        await websocket.send_json({"error": True, "detail": "Session orchestrator is not running"})
        await websocket.close(code=1011)
        return

    queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
    session.add_listener(queue.put_nowait)

    async def _sender() -> None:
        await websocket.send_json(
            SessionEvent(type=SessionEventType.state, snapshot=session.snapshot()).model_dump(
                mode="json"
            )
        )
        while True:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))

    async def _receiver() -> None:
        while True:
            await websocket.receive_text()

    sender = asyncio.create_task(_sender())
    receiver = asyncio.create_task(_receiver())
    try:
        done, _pending = await asyncio.wait(
            {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Session stream ended with error: %s", exc)
    finally:
        sender.cancel()
        receiver.cancel()
        session.remove_listener(queue.put_nowait)
        logger.debug("Session stream client disconnected")
