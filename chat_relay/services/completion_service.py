"""Stateless chat-completion relay.

The frontend owns the conversation: every request carries the history it
wants replayed, so nothing is kept between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Optional

from loguru import logger

from ..config.llm_config import LlmConfig, get_llm_config
from ..models.chat_message import ChatMessage, HistoryEntry
from ..models.enums import MessageRole
from ..prompts.system import DEFAULT_SYSTEM_PROMPT
from ..utils.api_client import OpenAIClient
from ..utils.error_handler import UpstreamError


@dataclass(frozen=True)
class CompletionResult:
    text: str
    model: str
    usage: Optional[dict[str, Any]]


class CompletionService:
    """Forwards one message plus its history to the chat-completion endpoint."""

    def __init__(
        self,
        llm_config: LlmConfig | None = None,
        client: OpenAIClient | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self.llm_config = llm_config or get_llm_config()
        self.client = client or OpenAIClient(self.llm_config)
        self.system_prompt = system_prompt

    def close(self) -> None:
        self.client.close()

    def build_messages(
        self,
        message: str,
        history: Iterable[HistoryEntry] | None = None,
    ) -> list[dict[str, Any]]:
        """System instruction, then the history verbatim, then the new message."""
        messages: list[dict[str, Any]] = [
            ChatMessage(role=MessageRole.SYSTEM, content=self.system_prompt).to_api()
        ]
        messages.extend(entry.to_api() for entry in history or ())
        messages.append(ChatMessage(role=MessageRole.USER, content=message).to_api())
        return messages

    def build_payload(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        config = self.llm_config
        return {
            "model": config.model,
            "messages": messages,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
            "frequency_penalty": config.frequency_penalty,
            "presence_penalty": config.presence_penalty,
        }

    def complete(
        self,
        message: str,
        history: Iterable[HistoryEntry] | None = None,
    ) -> CompletionResult:
        """Generate a reply to ``message`` given the prior ``history``.

        Raises
        ------
        UpstreamError
            If upstream answers with a non-success status or returns no
            choices.  The failure is not retried.
        """
        messages = self.build_messages(message, history)
        logger.info("Requesting completion from {} with {} message(s)", self.llm_config.model, len(messages))
        completion = self.client.create_chat_completion(self.build_payload(messages))

        if not completion.choices:
            raise UpstreamError("Upstream returned no choices")
        content = completion.choices[0].message.content
        if content is None:
            raise UpstreamError("Upstream returned an empty choice")

        logger.info("Completion received from {} (usage={})", completion.model, completion.usage)
        return CompletionResult(text=content, model=completion.model, usage=completion.usage)


@lru_cache()
def get_completion_service() -> CompletionService:
    """Return a singleton CompletionService built from the environment."""
    return CompletionService()
