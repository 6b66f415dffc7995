"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamchat.api.config import StoreConfig, get_store_config
from streamchat.api.routes import router as store_router
from streamchat.api.store import ConversationStore, build_store

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Closes the store on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting streamchat API...")
    yield
    logger.info("Shutting down streamchat API...")
    app.state.store.close()


def create_app(
    config: StoreConfig | None = None,
    store: ConversationStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Store configuration. Loads from environment if not provided.
        store: Preconstructed store; overrides the configured backend.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="streamchat API",
        description=(
            "Conversation and message persistence for the streamchat client. "
            "Stores conversation history entries and transcripts."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.store = store or build_store(config or get_store_config())

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_METHODS,
        allow_headers=["Content-Type", "Authorization"],
    )

    application.include_router(store_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "streamchat"}

    return application
