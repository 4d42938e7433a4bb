"""General helper functions used across the application."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable

# Inline source markers such as 【4:0†source】 inserted by file search.
CITATION_PATTERN = re.compile(r"【[^】]*】")


def strip_citations(text: str) -> str:
    """Remove citation annotation markers from assistant output."""
    return CITATION_PATTERN.sub("", text)


def join_text_parts(parts: Iterable[str]) -> str:
    return "\n".join(parts)


def utc_timestamp() -> str:
    """Current UTC time in ISO 8601 format with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
