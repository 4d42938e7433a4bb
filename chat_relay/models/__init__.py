"""Expose commonly used model classes at the package level.

Importing these classes here allows consumers to write concise imports like::

    from chat_relay.models import CompletionChatRequest, AssistantChatResponse
"""

from .chat_request import AssistantChatRequest, CompletionChatRequest  # noqa: F401
from .chat_response import (  # noqa: F401
    AssistantChatResponse,
    CompletionChatResponse,
    NewThreadResponse,
)
from .chat_message import ChatMessage, HistoryEntry  # noqa: F401
from .enums import MessageRole, RunStatus  # noqa: F401
