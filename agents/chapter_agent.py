"""Chapter Agent: writes the manuscript text of a single chapter."""

import logging
from typing import Callable, Optional

from agents.base_agent import BaseAgent
from config.exceptions import GenerationError, LLMError, ValidationError
from config.settings import Settings
from models.outline import Outline
from models.project import Project
from tools.agent_sdk_client import AgentSDKClient
from tools.text_utils import ensure_chapter_heading

logger = logging.getLogger(__name__)


def _table_of_contents(outline: Outline) -> str:
    return "\n".join(
        f"{i + 1}. {ch.title}: {ch.description}" for i, ch in enumerate(outline.chapters)
    )


class ChapterAgent(BaseAgent):
    """Generates one chapter at a time so chapters can be regenerated independently."""

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)
        self._template = self._load_prompt("chapter")

    def build_prompts(self, project: Project, outline: Outline, index: int) -> tuple[str, str]:
        chapter = outline.chapters[index]
        system_prompt = self._extract_section(self._template, "System Prompt")
        user_prompt = self._extract_section(self._template, "Writing Instructions").format(
            chapter_number=index + 1,
            chapter_total=len(outline.chapters),
            book_title=outline.title,
            chapter_title=chapter.title,
            chapter_description=chapter.description,
            estimated_pages=chapter.estimated_pages,
            table_of_contents=_table_of_contents(outline),
            **self._project_fields(project),
        )
        return system_prompt, user_prompt

    async def write_chapter(
        self,
        project: Project,
        outline: Outline,
        index: int,
        on_event: Optional[Callable[[dict], None]] = None,
    ) -> str:
        """Write chapter ``index`` and return its Markdown text.

        Raises:
            ValidationError: If ``index`` is outside the outline.
            GenerationError: If the call fails or returns no text.
        """
        if not 0 <= index < len(outline.chapters):
            raise ValidationError(
                "Chapter index out of range",
                {"index": index, "chapters": len(outline.chapters)},
            )

        chapter = outline.chapters[index]
        system_prompt, user_prompt = self.build_prompts(project, outline, index)
        logger.info("Writing chapter %d: '%s'...", index + 1, chapter.title)

        try:
            text = await self.llm.chat(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                model=self.settings.llm_model_chapter,
                on_event=on_event,
            )
        except LLMError as e:
            logger.error("Chapter %d generation failed: %s", index + 1, e)
            raise GenerationError(f"Chapter {index + 1} generation failed: {e.message}") from e

        if not text or not text.strip():
            raise GenerationError(f"Chapter {index + 1} came back empty", {"index": index})

        content = ensure_chapter_heading(text, chapter.title)
        logger.info("Chapter %d written: %d chars", index + 1, len(content))
        return content
