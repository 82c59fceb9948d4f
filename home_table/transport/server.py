# -*- coding: utf-8 -*-
"""
WebSocket server for home tables.

Usage:
    python -m home_table.transport.server --host 0.0.0.0 --port 3000

Clients connect to ``/ws`` and exchange ``{"type", "payload"}`` JSON frames.
``GET /health`` answers ``ok`` regardless of table state.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from typing import Optional

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..logging_utils import NDJSONLogger
from ..registry import TableRegistry
from ..settings import ServerSettings
from .hub import TableHub, dumps

logger = logging.getLogger(__name__)


def build_registry(settings: ServerSettings) -> TableRegistry:
    journal = NDJSONLogger(settings.journal_path) if settings.journal_path is not None else None
    return TableRegistry(
        engine_config=settings.engine_config,
        journal=journal,
        turn_policy=settings.turn_policy,
    )


def create_app(settings: Optional[ServerSettings] = None, registry: Optional[TableRegistry] = None) -> Starlette:
    settings = settings or ServerSettings()
    registry = registry if registry is not None else build_registry(settings)
    hub = TableHub(registry)
    origins = settings.allowed_origins

    async def health(request: Request) -> PlainTextResponse:
        return PlainTextResponse("ok")

    async def table_socket(websocket: WebSocket) -> None:
        origin = websocket.headers.get("origin")
        if origins != ["*"] and origin is not None and origin not in origins:
            logger.warning("rejecting websocket from origin %s", origin)
            await websocket.close(code=1008)
            return

        await websocket.accept()
        connection = uuid.uuid4().hex

        async def send(message) -> None:
            await websocket.send_text(dumps(message))

        hub.attach(connection, send)
        try:
            while True:
                text = await websocket.receive_text()
                await hub.receive(connection, text)
        except WebSocketDisconnect:
            pass
        finally:
            await hub.detach(connection)

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            WebSocketRoute("/ws", table_socket),
        ],
        middleware=[
            Middleware(CORSMiddleware, allow_origins=origins, allow_methods=["GET", "POST"]),
        ],
    )
    app.state.registry = registry
    app.state.hub = hub
    app.state.settings = settings
    return app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the home table WebSocket server")
    parser.add_argument("--host", type=str, default=None, help="Host to bind the server (env HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind the server (env PORT)")
    parser.add_argument("--config", help="Optional YAML/JSON settings file")
    parser.add_argument("--journal", help="Append table events as NDJSON to this file")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> ServerSettings:
    settings = ServerSettings.from_env()
    if args.config:
        settings = settings.with_file(args.config)
    return settings.with_overrides({"host": args.host, "port": args.port, "journal_path": args.journal})


async def serve(settings: ServerSettings) -> None:
    app = create_app(settings)
    print(f"Home table server on {settings.host}:{settings.port}, ALLOWED_ORIGIN={settings.allowed_origin}")
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level="info")
    server = uvicorn.Server(config)
    try:
        await server.serve()
    finally:
        app.state.registry.journal.close()


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    asyncio.run(serve(settings_from_args(args)))


if __name__ == "__main__":
    main()
