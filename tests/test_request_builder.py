"""Tests for the assessment prompt narrative and request assembly."""

import pytest

from myeloma_guard.core.request_builder import (
    IMAGE_LABELS,
    build_request,
    combine_notes,
)
from myeloma_guard.models.patient import Gender, PatientRecord
from myeloma_guard.models.schemas import ImageAttachment, Modality
from myeloma_guard.prompts.assessment import active_labs, format_assessment_prompt

PREGNANCY_DIRECTIVE = "If the patient is PREGNANT, explicitly advise the oncologist **NOT** to start standard chemotherapy."
KIDNEY_DIRECTIVE = "explicitly advise **AGAINST** starting standard chemotherapy without first stabilizing renal function"


def _img(tag: str) -> ImageAttachment:
    return ImageAttachment(payload=tag, mime_type="image/png")


# ── Narrative ────────────────────────────────────────────────────────────
def test_m_protein_value_suppressed_when_not_present(valid_record):
    record = valid_record.with_changes({
        "lab_results": {"m_protein_present": False, "m_protein_value": 4.5},
    })
    prompt = format_assessment_prompt(record, "")
    assert "4.5" not in prompt
    assert "M-Protein Present" not in prompt


def test_m_protein_value_included_when_present(valid_record):
    record = valid_record.with_changes({
        "lab_results": {"m_protein_present": True, "m_protein_value": 4.5},
    })
    assert active_labs(record) == ["M-Protein Present (SPEP): Level 4.5 g/dL"]


@pytest.mark.parametrize("gender, pregnant, expected", [
    (Gender.FEMALE, True, "Pregnancy Status: PREGNANT"),
    (Gender.FEMALE, False, "Pregnancy Status: Not Pregnant"),
])
def test_pregnancy_status_for_female(gender, pregnant, expected):
    record = PatientRecord(age="30", gender=gender, location="Bomet", is_pregnant=pregnant)
    assert expected in format_assessment_prompt(record, "")


def test_pregnancy_status_omitted_for_male():
    record = PatientRecord(age="30", gender=Gender.MALE, location="Bomet", is_pregnant=True)
    assert "Pregnancy Status" not in format_assessment_prompt(record, "")


def test_only_active_symptoms_listed(valid_record):
    record = valid_record.with_changes({"symptoms": {"bone_pain": True, "weight_loss": True}})
    prompt = format_assessment_prompt(record, "")
    assert "- bone pain" in prompt
    assert "- weight loss" in prompt
    assert "blood in sputum" not in prompt.split("**Reported Symptoms:**")[1].split("**")[0]


def test_history_only_non_default(valid_record):
    prompt = format_assessment_prompt(valid_record, "")
    assert "No significant history reported" in prompt

    record = valid_record.with_changes({
        "medical_history": {"prior_kidney_issues": "Severe", "history_of_mgus": True},
    })
    prompt = format_assessment_prompt(record, "")
    assert "History of Kidney Disease: Severe" in prompt
    assert "History of Monoclonal Gammopathy (MGUS)" in prompt
    assert "Prior Bone Issues" not in prompt
    assert "No significant history reported" not in prompt


def test_biopsy_always_included(valid_record):
    prompt = format_assessment_prompt(valid_record, "")
    assert "Plasma Cell Percentage: 0%" in prompt
    assert "Abnormal/Clonal Plasma Cells Detected: No" in prompt


def test_identifiers_only_when_present(valid_record):
    assert "Patient ID" not in format_assessment_prompt(valid_record, "")
    record = valid_record.with_changes({"patient_id": "PT-9", "uhid": "U-77"})
    prompt = format_assessment_prompt(record, "")
    assert "Patient ID: PT-9" in prompt
    assert "UHID: U-77" in prompt


def test_safety_directives_always_present(valid_record):
    prompt = format_assessment_prompt(valid_record, "")
    assert PREGNANCY_DIRECTIVE in prompt
    assert KIDNEY_DIRECTIVE in prompt
    assert '"riskLevel": "Low" | "Moderate" | "High" | "Critical"' in prompt


def test_narrative_is_deterministic(valid_record):
    assert format_assessment_prompt(valid_record, "n") == format_assessment_prompt(valid_record, "n")


# ── Notes ────────────────────────────────────────────────────────────────
def test_combine_notes_labels_each_modality():
    notes = combine_notes(
        "General note",
        {Modality.ULTRASOUND: "US note", Modality.CT: "CT note", Modality.XRAY: ""},
        xray_finding="Lytic lesion in skull",
    )
    assert notes == (
        "General note\n\n"
        "[CT Scan Notes]: CT note\n\n"
        "[Ultrasound Notes]: US note\n\n"
        "[X-Ray AI Analysis]: Lytic lesion in skull"
    )


def test_combine_notes_empty():
    assert combine_notes("", {}) == ""


# ── Image parts ──────────────────────────────────────────────────────────
def test_image_parts_in_fixed_order(valid_record):
    attachments = {
        Modality.ULTRASOUND: _img("us"),
        Modality.CT: _img("ct"),
        Modality.XRAY: _img("xr"),
    }
    request = build_request(valid_record, attachments, "")
    assert [p.label for p in request.image_parts] == [
        "Attached Image 1: CT Scan",
        "Attached Image 2: X-Ray",
        "Attached Image 3: Ultrasound",
    ]
    assert [p.attachment.payload for p in request.image_parts] == ["ct", "xr", "us"]


def test_absent_modalities_omitted(valid_record):
    request = build_request(valid_record, {Modality.XRAY: _img("xr")}, "")
    assert [p.label for p in request.image_parts] == [IMAGE_LABELS[Modality.XRAY]]


def test_no_images(valid_record):
    request = build_request(valid_record, {}, "Some notes")
    assert request.image_parts == []
    assert "Some notes" in request.prompt_text
