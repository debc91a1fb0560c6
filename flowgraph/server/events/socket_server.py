"""
Socket.IO server pushing editor events to connected clients.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import socketio

from flowgraph.core.EventTypes import ALL_EVENTS
from flowgraph.server.state import EditorState, editor_state

logger = logging.getLogger(__name__)

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


# ---------------------------------------------------------------------------
# Bus fan-out: every EventBus event -> Socket.IO emit of the same name
# ---------------------------------------------------------------------------

def _forwarder(event: str) -> Callable[[Any], None]:
    def forward(payload: Any) -> None:
        # Bus listeners are synchronous; schedule the emit on the running loop.
        # Mutations made outside a running loop (scripts, tests) have no clients to reach.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(sio.emit(event, payload))
    return forward


def attach(state: EditorState) -> None:
    for event in ALL_EVENTS:
        state.forward(event, _forwarder(event))
    logger.debug(f"Forwarding {len(ALL_EVENTS)} editor events to Socket.IO")


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.info(f"Client {sid} connected")


@sio.event
async def disconnect(sid: str) -> None:
    logger.info(f"Client {sid} disconnected")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any, state: EditorState = editor_state) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application fed by *state*'s bus."""
    attach(state)
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
