"""
Gemini Client

Wrapper for Vertex AI Gemini API calls.
Handles initialization, multimodal content assembly, and fallback for
missing credentials.
Provides a global singleton for use across the application.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from myeloma_guard.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InlineImage:
    """One image to send alongside the prompt, preceded by its label."""

    label: str
    data: bytes
    mime_type: str


class GeminiClient:
    """Wrapper around Vertex AI Gemini generative model.

    Initializes Vertex AI on construction.  If credentials are missing or
    the project is not configured, the client gracefully degrades and
    ``is_available`` returns False.
    """

    def __init__(self) -> None:
        self.model = None
        self._initialized = False
        self._initialize()

    def _resolve_project(self) -> Optional[str]:
        """Return the GCP project ID from settings or credentials file."""
        if settings.GOOGLE_CLOUD_PROJECT:
            return settings.GOOGLE_CLOUD_PROJECT
        # Fall back: read project_id from the service-account JSON
        creds_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
        if creds_path and os.path.isfile(creds_path):
            with open(creds_path) as f:
                return json.load(f).get("project_id")
        return None

    def _initialize(self) -> None:
        """Attempt to initialise the Vertex AI SDK and load the model."""
        project = self._resolve_project()
        if not project:
            logger.warning(
                "GCP project not found - assessments are unavailable"
            )
            return

        try:
            import vertexai
            from vertexai.generative_models import GenerativeModel

            vertexai.init(
                project=project,
                location=settings.GOOGLE_CLOUD_LOCATION,
            )
            self.model = GenerativeModel(settings.GEMINI_MODEL)
            self._initialized = True
            logger.info("Gemini client initialized (model=%s)", settings.GEMINI_MODEL)
        except Exception as exc:
            logger.warning("Gemini initialization failed: %s", exc)
            logger.warning(
                "Configure Google Cloud credentials to enable assessments"
            )
            self._initialized = False

    @property
    def is_available(self) -> bool:
        """Return True if Gemini is ready to accept requests."""
        return self._initialized

    async def generate(
        self,
        prompt: str,
        images: Optional[list[InlineImage]] = None,
        response_mime_type: Optional[str] = None,
        temperature: float = 0.2,
        max_output_tokens: int = 4096,
    ) -> Optional[str]:
        """Generate a response from a prompt and optional images.

        Args:
            prompt: The text prompt, sent as the first part.
            images: Labelled images appended after the prompt, in order.
            response_mime_type: Set to ``"application/json"`` to request
                structured output.
            temperature: Sampling temperature.
            max_output_tokens: Maximum tokens in the response.

        Returns:
            The generated text, or None if the client is unavailable.
            Transport errors from the SDK propagate to the caller.
        """
        if not self._initialized:
            return None

        from vertexai.generative_models import Content, Part

        parts = [Part.from_text(prompt)]
        for image in images or []:
            parts.append(Part.from_text(image.label))
            parts.append(Part.from_data(data=image.data, mime_type=image.mime_type))

        generation_config = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        if response_mime_type:
            generation_config["response_mime_type"] = response_mime_type

        response = await self.model.generate_content_async(
            contents=[Content(role="user", parts=parts)],
            generation_config=generation_config,
        )
        return response.text


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------
gemini_client = GeminiClient()
