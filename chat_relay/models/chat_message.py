"""Models representing chat messages sent upstream."""

from typing import Any

from pydantic import BaseModel

from .enums import MessageRole


class ChatMessage(BaseModel):
    """A single message forwarded to the chat-completion endpoint."""

    role: MessageRole
    content: str

    def to_api(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class HistoryEntry(BaseModel):
    """A prior turn supplied by the frontend.

    Entries are replayed upstream as-is: only ``role`` and ``content`` are
    kept and neither is checked against :class:`MessageRole`.  Upstream is
    the one to reject a role it does not recognise.
    """

    role: Any = None
    content: Any = None

    def to_api(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}
