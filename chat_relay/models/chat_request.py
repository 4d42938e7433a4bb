"""Request models for the chat API."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .chat_message import HistoryEntry


class CompletionChatRequest(BaseModel):
    """Payload for ``POST /api/chat`` in completion mode.

    ``message`` must be a non-empty JSON string; numbers or objects are
    not coerced.  ``conversationHistory`` is the frontend-managed list of
    previous turns, oldest first.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(
        ...,
        min_length=1,
        strict=True,
        description="The user's message content.",
    )
    conversation_history: Optional[List[HistoryEntry]] = Field(
        default=None,
        alias="conversationHistory",
        description="Previous turns replayed before the new message.",
    )


class AssistantChatRequest(BaseModel):
    """Payload for ``POST /api/chat`` in assistant mode.

    When ``threadId`` is omitted a new upstream thread is created and its
    identifier is returned so the client can continue the conversation.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(
        ...,
        min_length=1,
        strict=True,
        description="The user's message content.",
    )
    thread_id: Optional[str] = Field(
        default=None,
        alias="threadId",
        description="Existing thread to continue.  Not verified against the caller.",
    )
