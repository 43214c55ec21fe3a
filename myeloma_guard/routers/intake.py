"""
Intake Router

POST   /sessions                             - Start a new intake session
GET    /sessions/{session_id}                - Current session snapshot
DELETE /sessions/{session_id}                - Discard a session
PATCH  /sessions/{session_id}/record         - Partial update of the patient record
PUT    /sessions/{session_id}/images/{modality} - Upload a diagnostic image
DELETE /sessions/{session_id}/images/{modality} - Clear a diagnostic image
PUT    /sessions/{session_id}/notes/{modality}  - Set an imaging note
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, File, HTTPException, UploadFile
from pydantic import ValidationError as SchemaError

from myeloma_guard.core.errors import ImageCaptureError, InvalidTransition, WorkflowConflict
from myeloma_guard.core.workflow import WorkflowController
from myeloma_guard.memory.session_store import session_store
from myeloma_guard.models.schemas import Modality, ModalityNoteRequest, SessionView

router = APIRouter()


def get_session(session_id: str) -> WorkflowController:
    """Return the session's controller or raise 404."""
    controller = session_store.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return controller


def state_conflict(exc: InvalidTransition) -> HTTPException:
    """Map a workflow state error to a 409 response."""
    kind = "conflict" if isinstance(exc, WorkflowConflict) else "invalid_transition"
    return HTTPException(status_code=409, detail={"kind": kind, "message": str(exc)})


# ── Sessions ─────────────────────────────────────────────────────────────────

@router.post("", response_model=SessionView, status_code=201)
async def create_session() -> SessionView:
    return session_store.create().view()


@router.get("/{session_id}", response_model=SessionView)
async def read_session(session_id: str) -> SessionView:
    return get_session(session_id).view()


@router.delete("/{session_id}")
async def delete_session(session_id: str) -> dict[str, str]:
    if not session_store.drop(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"status": "deleted", "session_id": session_id}


# ── Record ───────────────────────────────────────────────────────────────────

@router.patch("/{session_id}/record", response_model=SessionView)
async def update_record(
    session_id: str, changes: dict[str, Any] = Body(...)
) -> SessionView:
    """Apply a partial update; nested groups may be sent partially."""
    controller = get_session(session_id)
    try:
        controller.update_record(changes)
    except InvalidTransition as exc:
        raise state_conflict(exc)
    except SchemaError as exc:
        raise HTTPException(
            status_code=422, detail=exc.errors(include_url=False, include_context=False)
        )
    return controller.view()


# ── Imaging ──────────────────────────────────────────────────────────────────

@router.put("/{session_id}/images/{modality}", response_model=SessionView)
async def upload_image(
    session_id: str, modality: Modality, file: UploadFile = File(...)
) -> SessionView:
    controller = get_session(session_id)
    content = await file.read()
    try:
        controller.attach_image(modality, content, file.content_type)
    except InvalidTransition as exc:
        raise state_conflict(exc)
    except ImageCaptureError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return controller.view()


@router.delete("/{session_id}/images/{modality}", response_model=SessionView)
async def clear_image(session_id: str, modality: Modality) -> SessionView:
    controller = get_session(session_id)
    try:
        controller.clear_image(modality)
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return controller.view()


@router.put("/{session_id}/notes/{modality}", response_model=SessionView)
async def set_note(
    session_id: str, modality: Modality, body: ModalityNoteRequest
) -> SessionView:
    controller = get_session(session_id)
    try:
        controller.set_modality_note(modality, body.note)
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return controller.view()
