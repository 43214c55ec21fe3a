"""Shared fixtures: sample records, a real PNG, and a fake Gemini client."""

import io
import json
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from myeloma_guard.models.patient import Gender, PatientRecord

HIGH_RISK_REPLY = json.dumps({
    "riskLevel": "High",
    "summary": "S",
    "findings": ["F1"],
    "recommendations": ["R1"],
})


class FakeGemini:
    """Stands in for the Vertex AI client singleton."""

    def __init__(self, reply=HIGH_RISK_REPLY, available=True):
        self.is_available = available
        self.generate = AsyncMock(return_value=reply)


@pytest.fixture
def fake_gemini(monkeypatch):
    fake = FakeGemini()
    monkeypatch.setattr("myeloma_guard.core.assessment_client.gemini_client", fake)
    return fake


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 200, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def valid_record() -> PatientRecord:
    return PatientRecord(age="62", gender=Gender.MALE, location="Bomet East")
