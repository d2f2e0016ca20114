"""Generation service boundary consumed by the workflow."""

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from agents.chapter_agent import ChapterAgent
from agents.cover_agent import CoverAgent
from agents.outline_agent import OutlineAgent
from config.settings import Settings
from models.outline import Outline
from models.project import Project
from tools.agent_sdk_client import AgentSDKClient
from tools.image_client import ImageClient

logger = logging.getLogger(__name__)


@runtime_checkable
class GenerationService(Protocol):
    """The three external generation operations.

    Implementations raise GenerationError (or NonFatalGenerationError for
    covers) with a human-readable message on failure.
    """

    async def plan_outline(self, project: Project) -> Outline:
        ...

    async def write_chapter(self, project: Project, outline: Outline, index: int) -> str:
        ...

    async def render_cover(self, prompt: str) -> str:
        ...


class AgentGenerationService:
    """Default service: Claude Agent SDK for text, Google GenAI for images."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[AgentSDKClient] = None,
        image_client: Optional[ImageClient] = None,
        on_event: Optional[Callable[[dict], None]] = None,
    ):
        self.settings = settings or Settings()
        self.llm = llm_client or AgentSDKClient(self.settings)
        self.outline_agent = OutlineAgent(self.llm, self.settings)
        self.chapter_agent = ChapterAgent(self.llm, self.settings)
        self.cover_agent = CoverAgent(image_client, self.settings)
        self.on_event = on_event

    async def plan_outline(self, project: Project) -> Outline:
        return await self.outline_agent.plan_outline(project)

    async def write_chapter(self, project: Project, outline: Outline, index: int) -> str:
        text = await self.chapter_agent.write_chapter(project, outline, index, on_event=self.on_event)
        logger.debug("Text generation usage so far: %s", self.llm.get_usage_summary())
        return text

    async def render_cover(self, prompt: str) -> str:
        return await self.cover_agent.render_cover(prompt)
