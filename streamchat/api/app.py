"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamchat.agent.chat_agent import CompletionProvider
from streamchat.api.chat import router as chat_router
from streamchat.api.errors import ApiError, api_error_handler
from streamchat.settings import ServerConfig, get_server_config
from streamchat.store import ChatStore, build_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Opens the chat store on startup and closes it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting StreamChat API...")
    await app.state.store.init()
    yield
    # Shutdown
    logger.info("Shutting down StreamChat API...")
    await app.state.store.close()


def create_app(
    *,
    store: ChatStore | None = None,
    provider: CompletionProvider | None = None,
    config: ServerConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Chat store to use. Built from ``config.database_url`` if omitted.
        provider: Completion provider. The shared Agno provider is created
            on first use if omitted.
        config: Server configuration. Loaded from environment if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = config or get_server_config()

    application = FastAPI(
        title="StreamChat API",
        description=(
            "Multi-turn chat API that persists conversations and relays model "
            "output incrementally over Server-Sent Events."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.state.config = settings
    application.state.store = store or build_store(settings.database_url)
    application.state.provider = provider

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(ApiError, api_error_handler)
    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "ok", "service": "streamchat"}

    return application


app = create_app()
