"""Claude Agent SDK wrapper used for outline and chapter text."""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings
from tools.json_utils import parse_json_response
from config.exceptions import LLMError, LLMResponseParseError

logger = logging.getLogger(__name__)

# The SDK refuses to start inside another Claude Code session when this is set.
os.environ.pop("CLAUDECODE", None)


@dataclass
class _Reply:
    """Accumulates one query's streamed messages."""

    text: str = ""
    draft: str = ""
    cost_usd: float = 0.0
    streaming: bool = False

    @property
    def result(self) -> str:
        # The final ResultMessage wins; assistant text is the fallback.
        return self.text or self.draft


class AgentSDKClient:
    """Single-turn text generation over ``claude_agent_sdk.query()``.

    Authentication is handled by the Claude Code CLI.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.total_calls = 0
        self.total_cost_usd = 0.0

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        on_event: Optional[Callable[[dict], None]] = None,
    ) -> str:
        """Send a single-turn request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to the chapter model.
            on_event: Optional progress hook, called with
                      {"type": "thinking", "text": str},
                      {"type": "text", "text": str} once for the first text,
                      and {"type": "result"} at the end.

        Raises:
            LLMError: If the query fails.
        """
        model = model or self.settings.llm_model_chapter
        self.total_calls += 1
        logger.debug("AgentSDK call #%d: model=%s", self.total_calls, model)

        reply = _Reply()
        options = ClaudeAgentOptions(system_prompt=system_prompt, model=model, max_turns=1)
        try:
            # The generator must be exhausted; leaving the loop early breaks
            # the SDK's internal cancel scopes.
            async for message in query(prompt=user_prompt, options=options):
                self._absorb(message, reply, on_event)
        except Exception as e:
            raise LLMError(f"Agent SDK query failed: {e}") from e

        self.total_cost_usd += reply.cost_usd
        logger.debug("AgentSDK result: %d chars, cost=$%.4f", len(reply.result), reply.cost_usd)
        if not reply.result:
            logger.warning("AgentSDK returned no content")
        return reply.result

    @staticmethod
    def _absorb(message, reply: _Reply, on_event: Optional[Callable[[dict], None]]):
        if isinstance(message, ResultMessage):
            reply.text = message.result or ""
            reply.cost_usd = message.total_cost_usd or 0.0
            if on_event:
                on_event({"type": "result"})
            return
        if not isinstance(message, AssistantMessage):
            return

        for block in message.content:
            thinking = getattr(block, "thinking", None)
            if thinking:
                if on_event:
                    on_event({"type": "thinking", "text": thinking})
                continue
            text = getattr(block, "text", None)
            if not text:
                continue
            if on_event and not reply.streaming:
                on_event({"type": "text", "text": text})
            reply.streaming = True
            reply.draft += text

    async def chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
    ) -> dict:
        """Send a request and parse the response as a JSON object.

        Raises:
            LLMResponseParseError: If response cannot be parsed as JSON.
        """
        text = await self.chat(system_prompt, user_prompt, model)
        try:
            return parse_json_response(text)
        except ValueError as e:
            raise LLMResponseParseError(str(e), raw_response=text) from e

    def get_usage_summary(self) -> dict:
        """Return call count and cost statistics."""
        return {"total_calls": self.total_calls, "total_cost_usd": round(self.total_cost_usd, 4)}
