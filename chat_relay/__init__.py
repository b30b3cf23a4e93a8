# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chat_relay.logging import logger
from chat_relay.managers.session_registry import SessionRegistry
from chat_relay.middlewares.correlation_id import CorrelationIDMiddleware
from chat_relay.routing import collect_subrouters
from chat_relay.settings import app_settings
from chat_relay.utils.metrics import ws_connections_active


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Publishes the initial online count on startup and reports how many
    sessions were still registered when the server shut down.
    """
    registry: SessionRegistry = app.state.session_registry
    ws_connections_active.set(registry.current_count())
    logger.info(
        f"Chat relay started (environment: {app_settings.ENVIRONMENT})"
    )

    yield

    logger.info(
        f"Chat relay shutting down with {registry.current_count()} users online"
    )


def application(registry: SessionRegistry | None = None) -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    The application owns exactly one SessionRegistry, stored on
    ``app.state.session_registry`` and shared by every WebSocket connection
    and HTTP route of this app. Routers are collected from ``api/http`` and
    ``api/ws/consumers``; CorrelationIDMiddleware tags HTTP requests for
    logging.

    Args:
        registry: Registry to use instead of a fresh one (useful in tests).

    Returns:
        FastAPI: The configured application.
    """
    app = FastAPI(
        title="Chat relay",
        description="Point-to-point WebSocket text relay",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.session_registry = (
        registry if registry is not None else SessionRegistry()
    )

    app.include_router(collect_subrouters())
    app.add_middleware(CorrelationIDMiddleware)

    return app
