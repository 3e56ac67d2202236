"""
Swipe Deck Routes.

Endpoints that drive a SwipeEngine per session: start a deck, send
gestures or button decisions, undo, open the details sheet, fetch
"you might also like" items and drain toast notifications.
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from config.settings import get_settings
from engines.factory import create_swipe_session, reload_deck
from engines.gestures import GestureOutcome
from recs.models import SwipeDirection
from recs.recommender import Recommender
from services.catalog_client import CatalogClient, CatalogPort, load_catalog
from services.session_manager import SessionManager, SwipeSession, get_swipe_session_manager


router = APIRouter(prefix="/api/swipe", tags=["Swipe"])


# =============================================================================
# Dependencies
# =============================================================================

_catalog_client: Optional[CatalogClient] = None
_recommender = Recommender()


def get_catalog_port() -> CatalogPort:
    """Shared backend client (overridden in tests)."""
    global _catalog_client
    if _catalog_client is None:
        _catalog_client = CatalogClient(get_settings())
    return _catalog_client


def get_sessions() -> SessionManager:
    return get_swipe_session_manager()


def _require_session(session_id: str, sessions: SessionManager) -> SwipeSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown or expired session: {session_id}")
    return session


# =============================================================================
# Request Models
# =============================================================================

class GestureRequest(BaseModel):
    """A complete drag: displacement at release plus release velocity."""
    dx: float = Field(..., description="Horizontal displacement (points), right is positive")
    dy: float = Field(..., description="Vertical displacement (points), down is positive")
    vx: float = Field(default=0.0, description="Horizontal release velocity (points/ms)")
    vy: float = Field(default=0.0, description="Vertical release velocity (points/ms)")


class DecideRequest(BaseModel):
    """Button decision from the details sheet."""
    direction: SwipeDirection
    options: Optional[Dict[str, str]] = Field(
        default=None,
        description="Selected options for cart decisions, e.g. {'size': 'M'}"
    )


class DetailsRequest(BaseModel):
    open: bool = True


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/sessions", summary="Start a swipe session")
async def start_session(
    port: CatalogPort = Depends(get_catalog_port),
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    """Fetch, rank and deal a new deck."""
    # Backend calls block; the new engine is not shared yet, so it is built off the loop
    built = await run_in_threadpool(create_swipe_session, port, get_settings(), recommender=_recommender)
    session = sessions.add(built)
    return {
        "session_id": session.session_id,
        "deck": session.engine.snapshot(),
    }


@router.get("/sessions/{session_id}", summary="Current deck state")
async def get_session(
    session_id: str,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    session = _require_session(session_id, sessions)
    return {"session_id": session_id, "deck": session.engine.snapshot()}


@router.post("/sessions/{session_id}/gesture", summary="Apply a drag gesture")
async def apply_gesture(
    session_id: str,
    request: GestureRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    """
    Run a full drag through the engine.

    There is no exit animation server-side, so committed swipes are
    completed immediately.
    """
    engine = _require_session(session_id, sessions).engine

    preview = None
    decision = None
    if engine.begin_drag():
        preview = engine.drag(request.dx, request.dy)
        outcome = engine.release(request.dx, request.dy, vx=request.vx, vy=request.vy)
        if outcome.is_commit:
            decision = engine.complete_exit()
    else:
        outcome = GestureOutcome.IGNORED

    return {
        "outcome": outcome.value,
        "preview": preview.to_dict() if preview else None,
        "decision": decision.to_dict() if decision else None,
        "deck": engine.snapshot(),
    }


@router.post("/sessions/{session_id}/decide", summary="Like or add to cart without a drag")
async def decide(
    session_id: str,
    request: DecideRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    engine = _require_session(session_id, sessions).engine
    decision = engine.swipe(request.direction, request.options)
    if decision is None:
        raise HTTPException(status_code=409, detail="No card available for a decision")
    return {"decision": decision.to_dict(), "deck": engine.snapshot()}


@router.post("/sessions/{session_id}/undo", summary="Undo the last swipe")
async def undo(
    session_id: str,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    engine = _require_session(session_id, sessions).engine
    undone = engine.undo_swipe()
    return {"undone": undone, "deck": engine.snapshot()}


@router.post("/sessions/{session_id}/details", summary="Open or close the details sheet")
async def toggle_details(
    session_id: str,
    request: DetailsRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    engine = _require_session(session_id, sessions).engine
    if request.open:
        opened = engine.open_details()
    else:
        engine.close_details()
        opened = False
    return {"details_open": opened, "deck": engine.snapshot()}


@router.get("/sessions/{session_id}/similar", summary="You might also like")
async def similar_items(
    session_id: str,
    item_id: Optional[str] = Query(default=None, description="Anchor item (defaults to the current card)"),
    limit: int = Query(default=6, ge=1, le=50),
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    engine = _require_session(session_id, sessions).engine
    deck = engine.items
    if item_id is None:
        anchor = engine.current_item
    else:
        anchor = next((item for item in deck if item.id == item_id), None)
    if anchor is None:
        raise HTTPException(status_code=404, detail="No anchor item")

    items = _recommender.similar_items(anchor, deck, limit=limit)
    return {"anchor_id": anchor.id, "items": [item.to_card() for item in items]}


@router.get("/sessions/{session_id}/notifications", summary="Drain pending toasts")
async def drain_notifications(
    session_id: str,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, List[Dict[str, Any]]]:
    session = _require_session(session_id, sessions)
    return {"notifications": [n.to_dict() for n in session.notifier.drain()]}


@router.post("/sessions/{session_id}/reload", summary="Refill an exhausted deck")
async def reload(
    session_id: str,
    port: CatalogPort = Depends(get_catalog_port),
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, Any]:
    session = _require_session(session_id, sessions)
    if not session.engine.is_exhausted:
        raise HTTPException(status_code=409, detail="Deck still has cards")
    catalog = await run_in_threadpool(load_catalog, port)
    loaded = reload_deck(session, port, recommender=_recommender, catalog=catalog)
    return {"loaded": loaded, "deck": session.engine.snapshot()}


@router.delete("/sessions/{session_id}", summary="End a swipe session")
async def end_session(
    session_id: str,
    sessions: SessionManager = Depends(get_sessions),
) -> Dict[str, str]:
    if not sessions.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return {"status": "deleted"}
