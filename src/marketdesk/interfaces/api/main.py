# --- START OF FILE: src/marketdesk/interfaces/api/main.py ---
"""
ASGI entry point.

    uvicorn marketdesk.interfaces.api.main:asgi_app

`asgi_app` serves socket.io at `/<SOCKETIO_PATH>` and hands every other
request to the FastAPI `app`.
"""
import logging
from typing import Any, Dict, Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketdesk.config import settings
from marketdesk.boot import build_services
from marketdesk.logging_conf import setup_logging
from marketdesk.infrastructure.db.uow import create_tables
from marketdesk.interfaces.api.errors import install_exception_handlers
from marketdesk.interfaces.api.routers import auth as auth_router
from marketdesk.interfaces.api.routers import chat as chat_router
from marketdesk.interfaces.api.routers import orders as orders_router
from marketdesk.interfaces.api.metrics import router as metrics_router
from marketdesk.interfaces.realtime.socketio_server import build_socket_server

log = logging.getLogger(__name__)


def create_app(services: Optional[Dict[str, Any]] = None) -> FastAPI:
    app = FastAPI(title="MarketDesk API", version="1.0.0")
    app.state.services = services if services is not None else build_services()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_exception_handlers(app)

    @app.on_event("startup")
    async def on_startup():
        setup_logging(settings.ENV)
        log.info("🚀 Application startup sequence initiated...")
        if settings.AUTO_CREATE_TABLES:
            create_tables()
        log.info("🚀 Application startup complete.")

    @app.get("/")
    def root(): return {"message": "MarketDesk API Running"}

    @app.get("/health")
    def health(): return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(orders_router.router)
    app.include_router(chat_router.router)
    if settings.METRICS_ENABLED:
        app.include_router(metrics_router)
    return app


app = create_app()
sio = build_socket_server(app.state.services["gateway"], settings.cors_origins)
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path=settings.SOCKETIO_PATH)
# --- END OF FILE ---
