"""Relay between a chat frontend and the OpenAI API."""

__version__ = "0.1.0"
