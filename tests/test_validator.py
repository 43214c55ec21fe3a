"""Regression tests for the intake form validator.

Run with:  python -m pytest tests/test_validator.py -v
"""

import pytest

from myeloma_guard.core.validator import clear_resolved_errors, validate
from myeloma_guard.models.patient import Gender, PatientRecord


def _record(**fields) -> PatientRecord:
    base = {"age": "45", "gender": Gender.FEMALE, "location": "Bomet East"}
    base.update(fields)
    return PatientRecord(**base)


def test_complete_record_is_submittable():
    assert validate(_record()) == {}


# ── Missing required fields ──────────────────────────────────────────────
@pytest.mark.parametrize("missing, expected", [
    ({"age": ""}, {"age": "Age is required."}),
    ({"gender": None}, {"gender": "Gender is required."}),
    ({"location": ""}, {"location": "Location is required."}),
    ({"location": "   "}, {"location": "Location is required."}),
    (
        {"age": "", "gender": None, "location": ""},
        {
            "age": "Age is required.",
            "gender": "Gender is required.",
            "location": "Location is required.",
        },
    ),
])
def test_missing_fields(missing, expected):
    assert validate(_record(**missing)) == expected


# ── Age bounds ───────────────────────────────────────────────────────────
@pytest.mark.parametrize("age", ["0", "120", "1", "65", " 70 "])
def test_valid_ages(age: str):
    assert "age" not in validate(_record(age=age))


@pytest.mark.parametrize("age", ["121", "-1", "abc", "12.5", "1e2", "²"])
def test_invalid_ages(age: str):
    assert validate(_record(age=age)) == {"age": "Please enter a valid age."}


def test_optional_sections_are_not_validated():
    record = _record().with_changes({
        "symptoms": {"bone_pain": True},
        "lab_results": {"m_protein_present": True, "m_protein_value": 3.2},
    })
    assert validate(record) == {}


# ── Clearing stored errors ───────────────────────────────────────────────
def test_clear_resolved_errors_drops_filled_fields():
    errors = {
        "age": "Age is required.",
        "gender": "Gender is required.",
        "location": "Location is required.",
    }
    record = PatientRecord(age="50")
    assert clear_resolved_errors(errors, record) == {
        "gender": "Gender is required.",
        "location": "Location is required.",
    }


def test_clear_resolved_errors_does_not_revalidate():
    errors = {"age": "Age is required."}
    record = PatientRecord(age="999")
    assert clear_resolved_errors(errors, record) == {}
