"""
Assessment Request Builder

Combines the prompt narrative with the labelled image parts. Image parts
always follow CT -> X-Ray -> Ultrasound order, skipping absent modalities.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from myeloma_guard.models.patient import PatientRecord
from myeloma_guard.models.schemas import ImageAttachment, Modality
from myeloma_guard.prompts.assessment import format_assessment_prompt

IMAGE_LABELS: dict[Modality, str] = {
    Modality.CT: "Attached Image 1: CT Scan",
    Modality.XRAY: "Attached Image 2: X-Ray",
    Modality.ULTRASOUND: "Attached Image 3: Ultrasound",
}


@dataclass(frozen=True)
class ImagePart:
    label: str
    attachment: ImageAttachment


@dataclass(frozen=True)
class AssessmentRequest:
    prompt_text: str
    image_parts: list[ImagePart] = field(default_factory=list)


def combine_notes(
    notes: str,
    modality_notes: Mapping[Modality, str],
    xray_finding: Optional[str] = None,
) -> str:
    """Join general notes with each populated imaging note.

    The stored notes are left as they are; only the returned string carries
    the labelled additions.
    """
    parts = [notes.strip()] if notes.strip() else []
    for modality in Modality:
        note = modality_notes.get(modality, "").strip()
        if note:
            parts.append(f"[{modality.label} Notes]: {note}")
    if xray_finding and xray_finding.strip():
        parts.append(f"[X-Ray AI Analysis]: {xray_finding.strip()}")
    return "\n\n".join(parts)


def build_request(
    record: PatientRecord,
    attachments: Mapping[Modality, ImageAttachment],
    notes: str,
) -> AssessmentRequest:
    """Build the prompt and image parts for one assessment run.

    Args:
        record: The patient record.
        attachments: Captured images keyed by modality.
        notes: Combined notes from ``combine_notes``.
    """
    image_parts = [
        ImagePart(label=IMAGE_LABELS[modality], attachment=attachments[modality])
        for modality in Modality
        if attachments.get(modality) is not None
    ]
    return AssessmentRequest(
        prompt_text=format_assessment_prompt(record, notes),
        image_parts=image_parts,
    )
