"""
Pydantic Schemas

Defines the shared value types and the request/response models:
- ImageAttachment, Modality for diagnostic imaging
- AssessmentResult, RiskLevel for the AI assessment
- SessionView, ConfirmationSummary for the intake workflow endpoints
- XrayAnalysisResponse, StatsResponse, ClearResponse for the remaining routes
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from myeloma_guard.models.patient import PatientRecord


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


class WorkflowState(str, Enum):
    INTAKE = "Intake"
    ANALYZING = "Analyzing"
    REPORT = "Report"


class Modality(str, Enum):
    """Imaging modalities, declared in prompt attachment order."""

    CT = "ct"
    XRAY = "xray"
    ULTRASOUND = "ultrasound"

    @property
    def label(self) -> str:
        return _MODALITY_LABELS[self]


_MODALITY_LABELS: dict[Modality, str] = {
    Modality.CT: "CT Scan",
    Modality.XRAY: "X-Ray",
    Modality.ULTRASOUND: "Ultrasound",
}


class ImageAttachment(BaseModel):
    """A captured image: base64 payload plus its MIME type."""

    model_config = ConfigDict(frozen=True)

    payload: str
    mime_type: str


class AssessmentResult(BaseModel):
    """Risk assessment returned by the model, plus the exact reply text."""

    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    summary: str
    findings: list[str]
    recommendations: list[str]
    raw_response_text: str


class ConfirmationSummary(BaseModel):
    """Key indicators shown to the user before the assessment is generated."""

    patient: str
    patient_id: Optional[str] = None
    uhid: Optional[str] = None
    pregnant: bool = False
    location: str
    symptoms: list[str] = []
    labs: list[str] = []
    biopsy: str
    imaging: list[str] = []


class SessionView(BaseModel):
    """Full snapshot of one intake session."""

    session_id: str
    state: WorkflowState
    record: PatientRecord
    field_errors: dict[str, str] = {}
    error: Optional[str] = None
    confirmation_open: bool = False
    attachments: dict[Modality, bool] = {}
    modality_notes: dict[Modality, str] = {}
    xray_finding: Optional[str] = None
    xray_pending: bool = False
    result: Optional[AssessmentResult] = None


class ModalityNoteRequest(BaseModel):
    note: str = Field(default="")


class XrayAnalysisResponse(BaseModel):
    session_id: str
    finding: str


class StatsResponse(BaseModel):
    sessions: int
    by_state: dict[WorkflowState, int]
    model_available: bool


class ClearResponse(BaseModel):
    status: str
    sessions_cleared: int
