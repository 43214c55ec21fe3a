"""
Patient Record Model

Immutable representation of one intake case. Every edit goes through
``PatientRecord.with_changes`` and produces a new record; nested groups are
frozen as well, so no holder ever observes an in-place mutation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class Severity(str, Enum):
    """Ordinal severity for prior bone / kidney history."""

    NONE = "None"
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER: list[Severity] = [
    Severity.NONE,
    Severity.MILD,
    Severity.MODERATE,
    Severity.SEVERE,
]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class MedicalHistory(_Frozen):
    prior_bone_issues: Severity = Severity.NONE
    prior_kidney_issues: Severity = Severity.NONE
    history_of_mgus: bool = False
    other: str = ""


class Symptoms(_Frozen):
    pneumonia_like: bool = False
    blood_in_sputum: bool = False
    bone_pain: bool = False
    joint_swelling: bool = False
    unexplained_fractures: bool = False
    fatigue: bool = False
    weight_loss: bool = False


class LabResults(_Frozen):
    m_protein_present: bool = False
    m_protein_value: float = Field(default=0.0, ge=0.0, le=6.0)  # g/dL
    anemia: bool = False
    hypercalcemia: bool = False
    kidney_issues: bool = False


class BoneMarrowBiopsy(_Frozen):
    plasma_cell_percentage: int = Field(default=0, ge=0, le=100)
    abnormal_plasma_cells: bool = False


# Nested groups that are merged field-by-field on update
_GROUPS: dict[str, type[_Frozen]] = {
    "medical_history": MedicalHistory,
    "symptoms": Symptoms,
    "lab_results": LabResults,
    "bone_marrow_biopsy": BoneMarrowBiopsy,
}


class PatientRecord(_Frozen):
    """One patient case as entered on the intake form."""

    patient_id: Optional[str] = None
    uhid: Optional[str] = None

    age: str = ""
    gender: Optional[Gender] = None
    location: str = ""
    is_pregnant: bool = False

    medical_history: MedicalHistory = MedicalHistory()
    symptoms: Symptoms = Symptoms()
    lab_results: LabResults = LabResults()
    bone_marrow_biopsy: BoneMarrowBiopsy = BoneMarrowBiopsy()

    notes: str = ""

    def with_changes(self, changes: dict[str, Any]) -> PatientRecord:
        """Return a new record with ``changes`` applied.

        Nested groups accept partial dicts and are merged onto the current
        group value. The result is re-validated, so out-of-range values
        raise ``pydantic.ValidationError``.
        """
        data = self.model_dump()
        for key, value in changes.items():
            if key in _GROUPS and isinstance(value, dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return PatientRecord.model_validate(data)


def default_record() -> PatientRecord:
    """Return the blank record used at session start and on reset."""
    return PatientRecord()
