"""Outline Agent: plans the book title, chapter list, and cover prompt."""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from agents.base_agent import BaseAgent
from config.exceptions import GenerationError, LLMError, ValidationError
from config.settings import Settings
from models.enums import PAGES_PER_CHAPTER
from models.outline import Outline
from models.project import Project
from tools.agent_sdk_client import AgentSDKClient
from tools.schemas import OutlinePayload

logger = logging.getLogger(__name__)


def _describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class OutlineAgent(BaseAgent):
    """Turns a project configuration into a validated Outline."""

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)
        self._template = self._load_prompt("outline")

    def build_prompts(self, project: Project) -> tuple[str, str]:
        pages = PAGES_PER_CHAPTER[project.target_length]
        system_prompt = self._extract_section(self._template, "System Prompt")
        user_prompt = self._extract_section(self._template, "Planning Instructions").format(
            description=project.description.strip(),
            chapter_count=project.chapter_count,
            target_length=project.target_length.value,
            pages_per_chapter=pages,
            **self._project_fields(project),
        )
        return system_prompt, user_prompt

    async def plan_outline(self, project: Project) -> Outline:
        """Plan a new outline. Every call returns an independent Outline.

        Raises:
            ValidationError: If the project has no description.
            GenerationError: If the call fails or the payload is unusable.
        """
        if not project.description.strip():
            raise ValidationError("A topic description is required to plan an outline")

        system_prompt, user_prompt = self.build_prompts(project)
        logger.info("Planning outline (%d chapters requested)...", project.chapter_count)

        try:
            data = await self.llm.chat_json(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                model=self.settings.llm_model_outline,
            )
        except LLMError as e:
            logger.error("Outline generation failed: %s", e)
            raise GenerationError(f"Outline planning failed: {e.message}") from e

        try:
            payload = OutlinePayload.model_validate(data)
        except PydanticValidationError as e:
            detail = _describe_errors(e)
            logger.error("Outline payload rejected: %s", detail)
            raise GenerationError("Outline response is missing required fields", {"errors": detail}) from e

        outline = payload.to_outline(default_pages=PAGES_PER_CHAPTER[project.target_length])
        logger.info(
            "Outline planned: '%s', %d chapters, %d pages",
            outline.title, len(outline.chapters), outline.total_pages,
        )
        return outline
