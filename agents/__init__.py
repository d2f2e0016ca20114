"""Agents package: outline, chapter, and cover generators."""

from agents.base_agent import BaseAgent
from agents.outline_agent import OutlineAgent
from agents.chapter_agent import ChapterAgent
from agents.cover_agent import CoverAgent
from agents.service import GenerationService, AgentGenerationService

__all__ = [
    "BaseAgent",
    "OutlineAgent",
    "ChapterAgent",
    "CoverAgent",
    "GenerationService",
    "AgentGenerationService",
]
