"""System prompt prepended to every chat-completion request."""

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful and friendly assistant. You answer clearly and concisely."
)
