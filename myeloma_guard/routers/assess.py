"""
Assessment Router

POST /sessions/{session_id}/analyze      - Validate and open the confirmation step
POST /sessions/{session_id}/cancel       - Close the confirmation step
POST /sessions/{session_id}/confirm      - Run the Gemini risk assessment
POST /sessions/{session_id}/reset        - Clear everything and return to intake
POST /sessions/{session_id}/xray/analyze - Standalone X-ray review
POST /sessions/{session_id}/xray/apply   - Copy the X-ray finding into the X-ray note
"""

from fastapi import APIRouter, HTTPException

from myeloma_guard.core.errors import InvalidTransition, ValidationError
from myeloma_guard.models.schemas import (
    ConfirmationSummary,
    SessionView,
    XrayAnalysisResponse,
)
from myeloma_guard.routers.intake import get_session, state_conflict

router = APIRouter()


@router.post("/{session_id}/analyze", response_model=ConfirmationSummary)
async def request_analysis(session_id: str) -> ConfirmationSummary:
    """Validate the record and return the confirmation summary.

    Responds 422 with per-field messages when required fields are missing.
    """
    controller = get_session(session_id)
    try:
        return controller.request_analysis()
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": exc.message, "field_errors": exc.field_errors},
        )
    except InvalidTransition as exc:
        raise state_conflict(exc)


@router.post("/{session_id}/cancel", response_model=SessionView)
async def cancel_confirmation(session_id: str) -> SessionView:
    controller = get_session(session_id)
    try:
        controller.cancel_confirmation()
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return controller.view()


@router.post("/{session_id}/confirm", response_model=SessionView)
async def confirm(session_id: str) -> SessionView:
    """Run the assessment workflow for the confirmed record.

    Returns the session in Report state, or 502 with the banner message when
    the assessment failed (the session is back in Intake, data intact).
    """
    controller = get_session(session_id)
    try:
        result = await controller.confirm()
    except InvalidTransition as exc:
        raise state_conflict(exc)

    if result is None:
        raise HTTPException(status_code=502, detail=controller.error)
    return controller.view()


@router.post("/{session_id}/reset", response_model=SessionView)
async def reset(session_id: str) -> SessionView:
    controller = get_session(session_id)
    try:
        controller.reset()
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return controller.view()


@router.post("/{session_id}/xray/analyze", response_model=XrayAnalysisResponse)
async def analyze_xray(session_id: str) -> XrayAnalysisResponse:
    """Review the attached X-ray on its own; failures return a sentinel text."""
    controller = get_session(session_id)
    try:
        finding = await controller.analyze_xray()
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return XrayAnalysisResponse(session_id=session_id, finding=finding)


@router.post("/{session_id}/xray/apply", response_model=SessionView)
async def apply_xray_finding(session_id: str) -> SessionView:
    controller = get_session(session_id)
    try:
        controller.apply_xray_finding()
    except InvalidTransition as exc:
        raise state_conflict(exc)
    return controller.view()
