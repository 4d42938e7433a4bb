"""Typed views of the OpenAI payloads the relay consumes.

Only the fields the relay reads are declared; everything else upstream
sends is ignored.  Parsing goes through :func:`parse_payload` in the
client, which turns a shape mismatch into an ``UpstreamError``.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import MessageRole


class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ErrorDetail(UpstreamModel):
    message: Optional[str] = None
    type: Optional[str] = None
    code: Optional[str] = None


class ErrorBody(UpstreamModel):
    error: Optional[ErrorDetail] = None


# ---------------------------------------------------------------------------
# Chat completions


class CompletionMessage(UpstreamModel):
    role: str
    content: Optional[str] = None


class Choice(UpstreamModel):
    index: int = 0
    message: CompletionMessage
    finish_reason: Optional[str] = None


class ChatCompletion(UpstreamModel):
    id: Optional[str] = None
    model: str
    choices: List[Choice]
    usage: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Threads, messages and runs


class Thread(UpstreamModel):
    id: str


class RunError(UpstreamModel):
    code: Optional[str] = None
    message: Optional[str] = None


class Run(UpstreamModel):
    id: str
    thread_id: Optional[str] = None
    status: str
    last_error: Optional[RunError] = None


class TextValue(UpstreamModel):
    value: str = ""
    annotations: List[dict[str, Any]] = Field(default_factory=list)


class ContentPart(UpstreamModel):
    type: str
    text: Optional[TextValue] = None


class ThreadMessage(UpstreamModel):
    id: str
    role: str
    created_at: int = 0
    run_id: Optional[str] = None
    content: List[ContentPart] = Field(default_factory=list)

    @property
    def is_assistant(self) -> bool:
        return self.role == MessageRole.ASSISTANT.value

    def text(self) -> List[str]:
        """Values of the text-typed content parts, in order."""
        return [part.text.value for part in self.content if part.type == "text" and part.text is not None]


class MessageList(UpstreamModel):
    data: List[ThreadMessage] = Field(default_factory=list)

    def latest_assistant_message(self) -> Optional[ThreadMessage]:
        """The newest assistant message, or ``None``.

        Upstream lists newest first; ``created_at`` decides between
        entries and list order breaks ties.
        """
        replies = [message for message in self.data if message.is_assistant]
        if not replies:
            return None
        return max(replies, key=lambda message: message.created_at)
