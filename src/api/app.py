"""
FastAPI Application Factory.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:app --host 0.0.0.0 --port 8080
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Startup configures logging; shutdown closes every session and stops
    the shared dispatch pool once queued intents have been sent.
    """
    settings = get_settings()

    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )
    logger.info(
        "Starting swipe API",
        environment=settings.environment,
        port=settings.port,
        backend=settings.api_base_url,
    )

    yield

    from services.dispatcher import shutdown_dispatch_executor
    from services.session_manager import get_swipe_session_manager
    closed = get_swipe_session_manager().close_all()
    shutdown_dispatch_executor(wait_for_pending=True)
    logger.info("Shutting down swipe API", sessions_closed=closed)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DRYP Swipe API",
        description="""
        Swipe deck sessions for the DRYP fashion app.

        ## Main Endpoints

        - `POST /api/swipe/sessions` - deal a ranked deck
        - `POST /api/swipe/sessions/{id}/gesture` - like / pass / cart by drag
        - `POST /api/swipe/sessions/{id}/undo` - put the last card back
        - `GET /api/swipe/sessions/{id}/similar` - you might also like

        ## Health Checks

        - `/health`, `/health/detailed`, `/ready`, `/live`
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # =========================================================================
    # Middleware (order matters - first added = outermost)
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTracingMiddleware)

    # =========================================================================
    # Routes
    # =========================================================================

    from api.routes.health import router as health_router
    app.include_router(health_router, tags=["Health"])

    from api.routes.swipe import router as swipe_router
    app.include_router(swipe_router)

    return app


# Usage: uvicorn api.app:app
app = create_app()
