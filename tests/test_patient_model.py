"""Tests for the immutable patient record and ordinal severity."""

import pydantic
import pytest

from myeloma_guard.models.patient import (
    Gender,
    PatientRecord,
    Severity,
    default_record,
)


def test_severity_ordering():
    assert Severity.NONE < Severity.MILD < Severity.MODERATE < Severity.SEVERE
    assert Severity.SEVERE >= Severity.MODERATE
    assert max([Severity.MILD, Severity.SEVERE, Severity.NONE]) is Severity.SEVERE


def test_severity_parses_from_string():
    record = PatientRecord().with_changes({"medical_history": {"prior_bone_issues": "Moderate"}})
    assert record.medical_history.prior_bone_issues is Severity.MODERATE


def test_with_changes_returns_new_record():
    original = default_record()
    updated = original.with_changes({"age": "40", "gender": "Female"})

    assert updated is not original
    assert original.age == ""
    assert original.gender is None
    assert updated.age == "40"
    assert updated.gender is Gender.FEMALE


def test_nested_groups_merge_partially():
    record = PatientRecord().with_changes({"symptoms": {"fatigue": True}})
    record = record.with_changes({"symptoms": {"bone_pain": True}})
    assert record.symptoms.fatigue is True
    assert record.symptoms.bone_pain is True
    assert record.symptoms.weight_loss is False


def test_record_is_frozen():
    record = default_record()
    with pytest.raises(pydantic.ValidationError):
        record.age = "30"


@pytest.mark.parametrize("changes", [
    {"lab_results": {"m_protein_value": 6.5}},
    {"lab_results": {"m_protein_value": -0.1}},
    {"bone_marrow_biopsy": {"plasma_cell_percentage": 101}},
    {"gender": "Other"},
    {"unknown_field": "x"},
])
def test_out_of_range_values_rejected(changes):
    with pytest.raises(pydantic.ValidationError):
        default_record().with_changes(changes)


def test_default_record_values():
    record = default_record()
    assert record.patient_id is None
    assert record.notes == ""
    assert record.lab_results.m_protein_value == 0.0
    assert record.bone_marrow_biopsy.plasma_cell_percentage == 0
    assert record.medical_history.prior_kidney_issues is Severity.NONE
    assert record == PatientRecord()
