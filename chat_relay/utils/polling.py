"""Bounded fixed-interval polling.

:func:`poll_until` re-fetches a value until it satisfies a terminal
predicate, a failure predicate, or the attempt budget runs out.  The
sleep function is injectable so callers can be tested without real
delays.
"""

from __future__ import annotations

import time
from typing import Any, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


class PollFailed(Exception):
    """The fetched value reached a failure state."""

    def __init__(self, value: Any, attempts: int) -> None:
        super().__init__(f"polled value failed after {attempts} attempt(s)")
        self.value = value
        self.attempts = attempts


class PollTimeout(Exception):
    """The attempt budget was exhausted before a terminal state."""

    def __init__(self, attempts: int, last_value: Any) -> None:
        super().__init__(f"no terminal state after {attempts} attempt(s)")
        self.attempts = attempts
        self.last_value = last_value


def poll_until(
    fetch: Callable[[], T],
    *,
    is_done: Callable[[T], bool],
    is_failed: Callable[[T], bool] = lambda _: False,
    max_attempts: int = 60,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Sleep ``interval`` then ``fetch`` until ``is_done`` holds.

    The failure predicate is checked first on every fetched value, so a
    failed value raises :class:`PollFailed` at the attempt it is seen.
    After ``max_attempts`` fetches without a terminal value
    :class:`PollTimeout` is raised.
    """
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")

    last: T | None = None
    for attempt in range(1, max_attempts + 1):
        sleep(interval)
        last = fetch()
        if is_failed(last):
            raise PollFailed(last, attempt)
        if is_done(last):
            logger.debug("Polling finished after {} attempt(s)", attempt)
            return last
    raise PollTimeout(max_attempts, last)
