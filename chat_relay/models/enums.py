"""Enumerations used across models."""

from enum import Enum


class MessageRole(str, Enum):
    """Enum for message roles in a conversation.

    ``SYSTEM`` carries the relay's fixed instruction, ``USER`` the
    caller's messages and ``ASSISTANT`` the replies generated upstream.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class RunStatus(str, Enum):
    """Lifecycle states of an upstream assistant run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


# Raw status strings; upstream may add states this enum does not know.
FAILED_RUN_STATUSES = frozenset(
    {RunStatus.FAILED.value, RunStatus.CANCELLED.value, RunStatus.EXPIRED.value}
)
