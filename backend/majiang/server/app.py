from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from majiang.messaging.router import MessageRouter
from majiang.server.settings import GameServerSettings
from majiang.server.websocket import websocket_endpoint
from majiang.session.manager import SessionManager
from majiang.session.registry import RoomRegistry
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: GameServerSettings = request.app.state.settings
    registry = session_manager.registry
    return JSONResponse(
        {
            "status": "ok",
            "rooms": registry.room_count,
            "games_in_progress": registry.games_in_progress,
            "connections": session_manager.connection_count,
            "max_rooms": settings.max_rooms,
        },
    )


async def list_rooms(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse({"rooms": [info.model_dump(mode="json") for info in session_manager.registry.rooms_info()]})


def create_app(
    settings: GameServerSettings | None = None,
    registry: RoomRegistry | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if session_manager is None:
        if registry is None:
            registry = RoomRegistry(max_rooms=settings.max_rooms)
        session_manager = SessionManager(registry)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/rooms", list_rooms, methods=["GET"]),
        WebSocketRoute("/ws/{room_id}", ws_endpoint),
    ]

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("game server ready", max_rooms=settings.max_rooms)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = GameServerSettings()
    setup_logging(settings.log_dir, level=settings.log_level, log_format=settings.log_format)
    return create_app(settings=settings)


def main() -> None:  # pragma: no cover
    settings = GameServerSettings()
    uvicorn.run(
        "majiang.server.app:get_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
