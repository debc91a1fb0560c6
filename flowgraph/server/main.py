"""
HTTP and Socket.IO entry point for the flow graph editor.

    flowgraph-server
    uvicorn flowgraph.server.main:socket_app --port 3001
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowgraph import __version__
from flowgraph.config import EditorSettings, get_settings
from flowgraph.server.events.socket_server import create_socket_app
from flowgraph.server.routes.graph_routes import router

logger = logging.getLogger(__name__)

settings = get_settings()
logging.basicConfig(**settings.logging_config)


def create_app(config: EditorSettings) -> FastAPI:
    api = FastAPI(title="FlowGraph API", version=__version__)
    origins = config.allowed_origins
    api.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentials with a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    api.include_router(router, prefix="/api")

    @api.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return api


app = create_app(settings)

# Socket.IO owns the root ASGI app and hands plain HTTP to FastAPI.
socket_app = create_socket_app(app)


def run() -> None:
    import uvicorn

    logger.info(f"Serving flow graph editor on {settings.host}:{settings.port}")
    uvicorn.run(
        "flowgraph.server.main:socket_app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
