"""
Export Router

GET /sessions/{session_id}/export/pdf - Download the report as PDF
GET /sessions/{session_id}/export/csv - Download the report as CSV

Both require the session to be in Report state.
"""

from datetime import datetime

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from myeloma_guard.core.workflow import WorkflowController
from myeloma_guard.export.report_exporter import ReportData, to_csv, to_pdf
from myeloma_guard.models.schemas import WorkflowState
from myeloma_guard.routers.intake import get_session

router = APIRouter()


def _report_data(controller: WorkflowController) -> ReportData:
    if controller.state is not WorkflowState.REPORT or controller.result is None:
        raise HTTPException(
            status_code=409, detail="No finished assessment to export"
        )
    return ReportData(
        record=controller.record,
        result=controller.result,
        modality_notes=dict(controller.modality_notes),
        generated_at=datetime.now(),
    )


def _filename(data: ReportData, ext: str) -> str:
    ident = data.record.patient_id or data.record.uhid or "patient"
    safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in ident)
    return f"myeloma_report_{safe}_{data.timestamp:%Y%m%d}.{ext}"


@router.get("/{session_id}/export/pdf")
async def export_pdf(session_id: str) -> Response:
    data = _report_data(get_session(session_id))
    pdf = await run_in_threadpool(to_pdf, data)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_filename(data, "pdf")}"'},
    )


@router.get("/{session_id}/export/csv")
async def export_csv(session_id: str) -> Response:
    data = _report_data(get_session(session_id))
    return Response(
        content=to_csv(data),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{_filename(data, "csv")}"'},
    )
