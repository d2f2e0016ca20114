"""Cover Agent: renders the book cover from the outline's cover prompt."""

import logging
from typing import Optional

from agents.base_agent import BaseAgent
from config.exceptions import LLMError, NonFatalGenerationError
from config.settings import Settings
from tools.image_client import ImageClient

logger = logging.getLogger(__name__)


class CoverAgent(BaseAgent):
    """Cover generation. Failures are reported as NonFatalGenerationError."""

    def __init__(
        self,
        image_client: Optional[ImageClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.images = image_client or ImageClient(self.settings)
        self._template = self._load_prompt("cover")

    def build_prompt(self, concept: str) -> str:
        return self._extract_section(self._template, "Cover Instructions").format(
            concept=concept.strip(),
        )

    async def render_cover(self, prompt: str) -> str:
        """Return the cover as a data URI.

        Raises:
            NonFatalGenerationError: On an empty prompt, a failed call, or no image.
        """
        if not prompt or not prompt.strip():
            raise NonFatalGenerationError("No cover prompt available")

        logger.info("Rendering cover image...")
        try:
            image = await self.images.generate_image(self.build_prompt(prompt))
        except LLMError as e:
            raise NonFatalGenerationError(f"Cover generation failed: {e.message}") from e

        if not image:
            raise NonFatalGenerationError("Cover generation returned no image")
        return image
