"""
Intake Workflow Controller

Owns one intake session: the patient record, imaging attachments and notes,
and the Intake -> Analyzing -> Report state machine. The record and
attachments are only ever replaced, never mutated in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from myeloma_guard.agents.assessment_workflow import run_assessment
from myeloma_guard.core import assessment_client, image_capture
from myeloma_guard.core.errors import (
    XRAY_FAILED_MESSAGE,
    InvalidTransition,
    ValidationError,
    WorkflowConflict,
)
from myeloma_guard.core.request_builder import combine_notes
from myeloma_guard.core.validator import (
    REQUIRED_FIELDS_MESSAGE,
    clear_resolved_errors,
    validate,
)
from myeloma_guard.models.patient import Gender, PatientRecord, default_record
from myeloma_guard.models.schemas import (
    AssessmentResult,
    ConfirmationSummary,
    ImageAttachment,
    Modality,
    SessionView,
    WorkflowState,
)
from myeloma_guard.prompts.assessment import active_labs, active_symptoms

logger = logging.getLogger(__name__)


def build_confirmation_summary(
    record: PatientRecord, attachments: dict[Modality, ImageAttachment]
) -> ConfirmationSummary:
    """Summarise the key indicators for the confirmation step."""
    gender = record.gender.value if record.gender else "Unspecified"
    biopsy = record.bone_marrow_biopsy
    biopsy_line = f"{biopsy.plasma_cell_percentage}% plasma cells"
    if biopsy.abnormal_plasma_cells:
        biopsy_line += " (abnormal/clonal)"
    return ConfirmationSummary(
        patient=f"{record.age.strip()} yrs, {gender}",
        patient_id=record.patient_id or None,
        uhid=record.uhid or None,
        pregnant=record.is_pregnant and record.gender is Gender.FEMALE,
        location=record.location,
        symptoms=active_symptoms(record),
        labs=active_labs(record),
        biopsy=biopsy_line,
        imaging=[m.label for m in Modality if m in attachments],
    )


class WorkflowController:
    """State holder and sequencer for a single intake session."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.created_at = datetime.now(timezone.utc)
        self._generation = 0
        self._clear()

    def _clear(self) -> None:
        self.state = WorkflowState.INTAKE
        self.record: PatientRecord = default_record()
        self.field_errors: dict[str, str] = {}
        self.error: Optional[str] = None
        self.confirmation_open = False
        self.attachments: dict[Modality, ImageAttachment] = {}
        self.modality_notes: dict[Modality, str] = {}
        self.xray_finding: Optional[str] = None
        self.xray_pending = False
        self.result: Optional[AssessmentResult] = None

    # ── Guards ──────────────────────────────────────────────────────────

    def _require_intake(self, action: str) -> None:
        if self.state is WorkflowState.ANALYZING:
            raise WorkflowConflict(f"Cannot {action}: an assessment is in progress")
        if self.state is WorkflowState.REPORT:
            raise InvalidTransition(
                f"Cannot {action}: reset the session to start a new assessment"
            )

    # ── Intake edits ────────────────────────────────────────────────────

    def update_record(self, changes: dict[str, Any]) -> PatientRecord:
        """Apply a partial update and drop errors for fields now filled."""
        self._require_intake("edit the record")
        self.record = self.record.with_changes(changes)
        self.confirmation_open = False
        self.field_errors = clear_resolved_errors(self.field_errors, self.record)
        return self.record

    def attach_image(
        self,
        modality: Modality,
        file_bytes: bytes,
        declared_mime_type: Optional[str] = None,
    ) -> ImageAttachment:
        self._require_intake("attach an image")
        attachment = image_capture.capture(file_bytes, declared_mime_type)
        self.attachments = {**self.attachments, modality: attachment}
        self.confirmation_open = False
        if modality is Modality.XRAY:
            self.xray_finding = None
        logger.info("Session %s: %s image attached", self.session_id, modality.value)
        return attachment

    def clear_image(self, modality: Modality) -> None:
        self._require_intake("clear an image")
        self.attachments = {
            m: a for m, a in self.attachments.items() if m is not modality
        }
        self.confirmation_open = False
        if modality is Modality.XRAY:
            self.xray_finding = None

    def set_modality_note(self, modality: Modality, note: str) -> None:
        self._require_intake("edit imaging notes")
        self.modality_notes = {**self.modality_notes, modality: note}

    # ── Assessment ──────────────────────────────────────────────────────

    def request_analysis(self) -> ConfirmationSummary:
        """Validate the record and open the confirmation step.

        Raises:
            ValidationError: If required fields are missing or invalid.
        """
        self._require_intake("request an assessment")
        errors = validate(self.record)
        if errors:
            self.field_errors = errors
            self.error = REQUIRED_FIELDS_MESSAGE
            self.confirmation_open = False
            raise ValidationError(errors, REQUIRED_FIELDS_MESSAGE)

        self.field_errors = {}
        self.error = None
        self.confirmation_open = True
        return build_confirmation_summary(self.record, self.attachments)

    def cancel_confirmation(self) -> None:
        self._require_intake("cancel the confirmation")
        self.confirmation_open = False

    async def confirm(self) -> Optional[AssessmentResult]:
        """Run the assessment for the confirmed record.

        Returns:
            The result (state is now Report), or None on failure (state is
            back to Intake and ``error`` holds the message).
        """
        self._require_intake("confirm")
        if not self.confirmation_open:
            raise InvalidTransition("Request an assessment before confirming")

        self.confirmation_open = False
        self.error = None
        self.state = WorkflowState.ANALYZING
        xray_finding = self.xray_finding
        if xray_finding == XRAY_FAILED_MESSAGE:
            xray_finding = None
        notes = combine_notes(self.record.notes, self.modality_notes, xray_finding)
        logger.info(
            "Session %s: assessment started (%d image(s))",
            self.session_id,
            len(self.attachments),
        )

        try:
            outcome = await run_assessment(self.record, self.attachments, notes)
        except Exception:
            self.state = WorkflowState.INTAKE
            raise

        if "error" in outcome:
            self.error = outcome["error"]
            self.state = WorkflowState.INTAKE
            logger.info(
                "Session %s: assessment failed (%s)",
                self.session_id,
                outcome.get("error_kind"),
            )
            return None

        self._enter_report(outcome.get("result"))
        return self.result

    def _enter_report(self, result: Optional[AssessmentResult]) -> None:
        if result is None:
            self.state = WorkflowState.INTAKE
            raise InvalidTransition("Cannot enter Report without an assessment result")
        self.result = result
        self.state = WorkflowState.REPORT
        logger.info(
            "Session %s: report ready (risk=%s)", self.session_id, result.risk_level.value
        )

    def reset(self) -> None:
        """Return to a blank Intake."""
        if self.state is WorkflowState.ANALYZING:
            raise WorkflowConflict("Cannot reset while an assessment is in progress")
        self._generation += 1
        self._clear()
        logger.info("Session %s: reset", self.session_id)

    # ── Standalone X-ray review ─────────────────────────────────────────

    async def analyze_xray(self) -> str:
        """Run the free-text X-ray review; failures come back as a sentinel."""
        self._require_intake("analyze the X-ray")
        if self.xray_pending:
            raise WorkflowConflict("X-ray analysis is already in progress")
        attachment = self.attachments.get(Modality.XRAY)
        if attachment is None:
            raise InvalidTransition("No X-ray image attached")

        self.xray_pending = True
        generation = self._generation
        try:
            finding = await assessment_client.submit_image_only(attachment)
        finally:
            self.xray_pending = False

        current = self.attachments.get(Modality.XRAY)
        if (
            self.state is WorkflowState.INTAKE
            and generation == self._generation
            and current is attachment
        ):
            self.xray_finding = finding
        return finding

    def apply_xray_finding(self) -> str:
        """Copy the X-ray finding into the X-ray note."""
        self._require_intake("apply the X-ray finding")
        if not self.xray_finding:
            raise InvalidTransition("No X-ray finding to apply")
        self.set_modality_note(Modality.XRAY, self.xray_finding)
        return self.xray_finding

    # ── View ────────────────────────────────────────────────────────────

    def view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            state=self.state,
            record=self.record,
            field_errors=dict(self.field_errors),
            error=self.error,
            confirmation_open=self.confirmation_open,
            attachments={m: m in self.attachments for m in Modality},
            modality_notes={m: self.modality_notes.get(m, "") for m in Modality},
            xray_finding=self.xray_finding,
            xray_pending=self.xray_pending,
            result=self.result,
        )
