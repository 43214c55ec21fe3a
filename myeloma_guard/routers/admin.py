"""
Admin Router

Endpoints for inspecting and managing the in-memory session store:
  GET  /admin/stats - Session counts per workflow state, model availability
  POST /admin/clear - Drop every session
"""

from fastapi import APIRouter

from myeloma_guard.core.gemini_client import gemini_client
from myeloma_guard.memory.session_store import session_store
from myeloma_guard.models.schemas import ClearResponse, StatsResponse

router = APIRouter()


# ── GET /admin/stats ─────────────────────────────────────────────────────────

@router.get("/stats", response_model=StatsResponse)
async def stats() -> StatsResponse:
    return StatsResponse(
        sessions=len(session_store),
        by_state=session_store.counts_by_state(),
        model_available=gemini_client.is_available,
    )


# ── POST /admin/clear ────────────────────────────────────────────────────────

@router.post("/clear", response_model=ClearResponse)
async def clear() -> ClearResponse:
    """Drop all sessions, including any with an assessment in flight."""
    count = session_store.clear_all()
    return ClearResponse(status="success", sessions_cleared=count)
