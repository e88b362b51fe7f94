# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from relay.logging import logger
from relay.managers.connection_registry import ConnectionRegistry
from relay.managers.signal_relay import SignalRelay
from relay.routing import collect_subrouters
from relay.settings import app_settings

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application startup and shutdown handler.

    Open sockets are closed by the server on shutdown, and each close
    deregisters its own connection, so there is nothing to tear down here.
    """
    logger.info(
        f"Signal relay {__version__} starting "
        f"(python {sys.version_info.major}.{sys.version_info.minor}, "
        f"env {app_settings.ENV.value}, path {app_settings.SIGNAL_PATH})"
    )
    yield
    logger.info(
        f"Signal relay shutting down with {len(app.state.registry)} "
        "open connections"
    )


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    The connection registry and the relay built on top of it are created
    here, exactly once per application, and stored on `app.state` where the
    signaling endpoint and the health check pick them up.

    Routers are collected from `api/http` and `api/ws/consumers` by
    `relay.routing.collect_subrouters()`.
    """
    app = FastAPI(
        title="Signal relay",
        description="WebSocket signaling relay for WebRTC conferences",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.registry = ConnectionRegistry()
    app.state.relay = SignalRelay(
        app.state.registry, send_timeout=app_settings.send_timeout
    )

    app.include_router(collect_subrouters())

    return app
