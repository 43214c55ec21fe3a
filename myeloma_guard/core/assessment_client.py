"""
Assessment Client

Sends built requests to Gemini and turns replies into AssessmentResults.
The reply is validated against a strict schema: all four fields required,
risk level restricted to the known values.
"""

import json
import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from myeloma_guard.config import settings
from myeloma_guard.core.errors import (
    XRAY_FAILED_MESSAGE,
    AssessmentUnavailable,
    MalformedResponse,
)
from myeloma_guard.core.gemini_client import InlineImage, gemini_client
from myeloma_guard.core.image_capture import decode_payload
from myeloma_guard.core.request_builder import AssessmentRequest
from myeloma_guard.models.schemas import AssessmentResult, ImageAttachment, RiskLevel
from myeloma_guard.prompts.assessment import format_xray_prompt

logger = logging.getLogger(__name__)

NO_XRAY_ANALYSIS = "No analysis could be generated."


class _AssessmentReply(BaseModel):
    """Shape the model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    riskLevel: RiskLevel
    summary: str
    findings: list[str]
    recommendations: list[str]


def _clean_json_text(text: str) -> str:
    """Strip markdown code fences and leading/trailing whitespace."""
    text = text.strip()
    # Remove ```json ... ``` wrapper
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def parse_assessment(text: str) -> AssessmentResult:
    """Validate a raw reply and build the AssessmentResult.

    Raises:
        MalformedResponse: If the text is not JSON or does not match the
            expected shape.
    """
    try:
        payload = json.loads(_clean_json_text(text))
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"reply is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedResponse("reply is not a JSON object")

    try:
        reply = _AssessmentReply.model_validate(payload)
    except SchemaError as exc:
        fields = ", ".join(".".join(map(str, e["loc"])) for e in exc.errors())
        raise MalformedResponse(f"reply failed schema check: {fields}") from exc

    return AssessmentResult(
        risk_level=reply.riskLevel,
        summary=reply.summary,
        findings=reply.findings,
        recommendations=reply.recommendations,
        raw_response_text=text,
    )


def _inline_images(request: AssessmentRequest) -> list[InlineImage]:
    return [
        InlineImage(
            label=part.label,
            data=decode_payload(part.attachment),
            mime_type=part.attachment.mime_type,
        )
        for part in request.image_parts
    ]


async def submit(request: AssessmentRequest) -> AssessmentResult:
    """Run one assessment call.

    Raises:
        AssessmentUnavailable: Transport failure, missing client or empty
            reply.
        MalformedResponse: Reply received but unusable.
    """
    if not gemini_client.is_available:
        raise AssessmentUnavailable("Gemini client is not configured")

    try:
        raw = await gemini_client.generate(
            prompt=request.prompt_text,
            images=_inline_images(request),
            response_mime_type="application/json",
            temperature=settings.ASSESSMENT_TEMPERATURE,
            max_output_tokens=settings.ASSESSMENT_MAX_OUTPUT_TOKENS,
        )
    except Exception as exc:
        raise AssessmentUnavailable(f"Gemini call failed: {exc}") from exc

    if not raw or not raw.strip():
        raise AssessmentUnavailable("Gemini returned an empty reply")

    return parse_assessment(raw)


async def submit_image_only(attachment: Optional[ImageAttachment]) -> str:
    """Ask for a free-text review of a single X-ray.

    Never raises: any failure comes back as ``XRAY_FAILED_MESSAGE`` so the
    caller can show it inline.
    """
    if attachment is None or not gemini_client.is_available:
        logger.warning("X-ray review skipped: no image or client unavailable")
        return XRAY_FAILED_MESSAGE

    try:
        raw = await gemini_client.generate(
            prompt=format_xray_prompt(),
            images=[
                InlineImage(
                    label="X-Ray",
                    data=decode_payload(attachment),
                    mime_type=attachment.mime_type,
                )
            ],
            temperature=settings.ASSESSMENT_TEMPERATURE,
            max_output_tokens=settings.XRAY_MAX_OUTPUT_TOKENS,
        )
    except Exception as exc:
        logger.error("X-ray review failed: %s", exc)
        return XRAY_FAILED_MESSAGE

    if not raw or not raw.strip():
        return NO_XRAY_ANALYSIS
    return raw.strip()
