"""
Form Validator

Pure checks over a PatientRecord. Only the three demographic fields gate
submission; everything else on the form is optional.
"""

from myeloma_guard.models.patient import PatientRecord

MIN_AGE = 0
MAX_AGE = 120

REQUIRED_FIELDS_MESSAGE = "Please fill in the required fields."


def _valid_age(age: str) -> bool:
    text = age.strip()
    if not text.isdecimal():
        return False
    return MIN_AGE <= int(text) <= MAX_AGE


def validate(record: PatientRecord) -> dict[str, str]:
    """Return a mapping of field name to error message.

    An empty mapping means the record can be submitted.
    """
    errors: dict[str, str] = {}

    if not record.age.strip():
        errors["age"] = "Age is required."
    elif not _valid_age(record.age):
        errors["age"] = "Please enter a valid age."

    if record.gender is None:
        errors["gender"] = "Gender is required."

    if not record.location.strip():
        errors["location"] = "Location is required."

    return errors


def clear_resolved_errors(
    errors: dict[str, str], record: PatientRecord
) -> dict[str, str]:
    """Drop stored errors for fields that now hold a value.

    This does not re-run validation: an age that is present but still
    invalid loses its error here and gets it back on the next submit.
    """
    present = {
        "age": bool(record.age.strip()),
        "gender": record.gender is not None,
        "location": bool(record.location.strip()),
    }
    return {
        field: message
        for field, message in errors.items()
        if not present.get(field, False)
    }
