"""Google GenAI wrapper used for cover image generation."""

import base64
import logging
from typing import Optional

from google import genai
from google.genai import types

from config.exceptions import LLMError
from config.settings import Settings

logger = logging.getLogger(__name__)


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ImageClient:
    """Client for Google GenAI image generation calls."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._client = None
        self.total_calls = 0

    def _get_client(self) -> genai.Client:
        """Lazy initialization so text-only runs never need an API key."""
        if self._client is None:
            if not self.settings.google_api_key:
                raise LLMError("google_api_key is not configured")
            self._client = genai.Client(api_key=self.settings.google_api_key)
        return self._client

    async def generate_image(self, prompt: str, model: Optional[str] = None) -> str:
        """Render an image and return it as a data URI, or "" if none came back.

        Raises:
            LLMError: If the request fails.
        """
        model = model or self.settings.image_model_cover
        self.total_calls += 1
        logger.debug("Image call #%d: model=%s", self.total_calls, model)

        try:
            response = await self._get_client().aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    image_config=types.ImageConfig(aspect_ratio=self.settings.cover_aspect_ratio),
                ),
            )
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Image generation failed: {e}") from e

        candidates = response.candidates or []
        parts = candidates[0].content.parts if candidates and candidates[0].content else []
        for part in parts or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return to_data_uri(inline.data, inline.mime_type or "image/png")

        logger.warning("Image response contained no inline image data")
        return ""
