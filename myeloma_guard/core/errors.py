"""
Error Types

Exceptions raised by the intake workflow and the assessment client.
Routers translate them into HTTP status codes; nothing here is fatal to
the process.
"""

ASSESSMENT_FAILED_MESSAGE = "Failed to analyze patient data. Please try again."
XRAY_FAILED_MESSAGE = "Failed to analyze X-Ray."


class MyelomaGuardError(Exception):
    """Base class for all service errors."""


class ValidationError(MyelomaGuardError):
    """Required intake fields are missing or invalid."""

    def __init__(self, field_errors: dict[str, str], message: str) -> None:
        super().__init__(message)
        self.field_errors = field_errors
        self.message = message


class AssessmentUnavailable(MyelomaGuardError):
    """The AI endpoint could not be reached or returned nothing."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(ASSESSMENT_FAILED_MESSAGE)
        self.detail = detail
        self.message = ASSESSMENT_FAILED_MESSAGE


class MalformedResponse(AssessmentUnavailable):
    """The AI endpoint replied, but not with a usable assessment."""


class ImageCaptureError(MyelomaGuardError):
    """Uploaded bytes could not be decoded as an image."""


class InvalidTransition(MyelomaGuardError):
    """Operation is not allowed in the current workflow state."""


class WorkflowConflict(InvalidTransition):
    """An asynchronous operation of the same kind is already pending."""
