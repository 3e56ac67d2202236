"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Any, Dict
from fastapi import APIRouter, Depends

from api.routes.swipe import get_catalog_port, get_sessions
from config.settings import get_settings
from services.catalog_client import CatalogPort
from services.session_manager import SessionManager


router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "swipe-api",
    }


@router.get("/health/detailed")
async def detailed_health_check(
    port: CatalogPort = Depends(get_catalog_port),
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    The service stays usable without the backend (empty decks), so a
    failing backend reports "degraded" rather than an error status.
    """
    settings = get_settings()
    check = getattr(port, "check_health", None)
    backend_ok = bool(check()) if check else True

    return {
        "status": "healthy" if backend_ok else "degraded",
        "service": "swipe-api",
        "environment": settings.environment,
        "checks": {
            "config": "ok",
            "backend": {
                "status": "connected" if backend_ok else "unreachable",
                "url": settings.api_base_url,
            },
            "sessions": sessions.get_stats(),
        },
    }


@router.get("/ready")
async def readiness_check() -> Dict[str, str]:
    """Kubernetes-style readiness probe."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Kubernetes-style liveness probe."""
    return {"status": "alive"}
