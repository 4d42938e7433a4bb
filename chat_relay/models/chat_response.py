"""Response models for the chat API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionChatResponse(BaseModel):
    """Reply produced by a single chat-completion call.

    ``usage`` is forwarded exactly as upstream reported it.
    """

    response: str
    model: str
    usage: Optional[dict[str, Any]] = None


class AssistantChatResponse(BaseModel):
    """Reply produced by an assistant run.

    ``threadId`` must be resubmitted by the client to keep the
    conversation going; ``runId`` is diagnostic only.
    """

    model_config = ConfigDict(populate_by_name=True)

    response: str
    thread_id: str = Field(..., alias="threadId")
    run_id: str = Field(..., alias="runId")


class NewThreadResponse(BaseModel):
    """Identifier of a freshly created, empty thread."""

    model_config = ConfigDict(populate_by_name=True)

    thread_id: str = Field(..., alias="threadId")
