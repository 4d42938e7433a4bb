"""Thread-based relay backed by the OpenAI Assistants API.

A turn creates (or reuses) a thread, appends the user's message, starts
a run against the configured assistant and waits for it by polling at a
fixed interval.  The newest assistant message on the thread is then
returned with citation markers removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import time
from typing import Callable, Optional

from loguru import logger

from ..config.llm_config import LlmConfig, get_llm_config
from ..models.enums import FAILED_RUN_STATUSES, RunStatus
from ..models.upstream import Run
from ..utils.api_client import OpenAIClient
from ..utils.error_handler import ConfigurationError, RunTimeoutError, UpstreamError
from ..utils.helpers import join_text_parts, strip_citations
from ..utils.polling import PollFailed, PollTimeout, poll_until


@dataclass(frozen=True)
class AssistantResult:
    text: str
    thread_id: str
    run_id: str


class AssistantService:
    """Runs one conversation turn against an upstream assistant.

    The service keeps no per-conversation state; the caller owns the
    thread identifier and sends it back on later turns.  ``sleep`` is
    the delay used between run status checks and can be replaced in
    tests.
    """

    def __init__(
        self,
        llm_config: LlmConfig | None = None,
        client: OpenAIClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.llm_config = llm_config or get_llm_config()
        self.client = client or OpenAIClient(self.llm_config)
        self.sleep = sleep

    def close(self) -> None:
        self.client.close()

    @property
    def assistant_id(self) -> Optional[str]:
        return self.llm_config.assistant_id

    def require_assistant_id(self) -> str:
        if not self.assistant_id:
            raise ConfigurationError("OPENAI_ASSISTANT_ID is not configured")
        return self.assistant_id

    def new_thread(self) -> str:
        """Create an empty upstream thread and return its identifier."""
        thread = self.client.create_thread()
        logger.info("Created thread {}", thread.id)
        return thread.id

    def complete(self, message: str, thread_id: Optional[str] = None) -> AssistantResult:
        """Send ``message`` on ``thread_id`` (or a new thread) and wait for the reply.

        Raises
        ------
        ConfigurationError
            If no assistant identifier is configured.
        UpstreamError
            If any upstream step fails, the run ends as failed, cancelled
            or expired, or the thread holds no assistant reply.
        RunTimeoutError
            If the run is not completed within the polling budget.
        """
        assistant_id = self.require_assistant_id()

        # A supplied thread id is trusted as-is; upstream rejects unknown ones.
        # An empty id means the client has no thread yet.
        if not thread_id:
            thread_id = self.new_thread()
        else:
            logger.info("Reusing thread {}", thread_id)

        self.client.create_message(thread_id, message)
        run = self.client.create_run(thread_id, assistant_id)
        logger.info("Started run {} on thread {}", run.id, thread_id)

        self.wait_for_run(thread_id, run.id)

        messages = self.client.list_messages(thread_id)
        reply = messages.latest_assistant_message()
        if reply is None:
            raise UpstreamError("No assistant response found")

        text = strip_citations(join_text_parts(reply.text()))
        return AssistantResult(text=text, thread_id=thread_id, run_id=run.id)

    def wait_for_run(self, thread_id: str, run_id: str) -> Run:
        """Poll the run until it completes.

        Status checks happen every ``run_poll_interval`` seconds, at most
        ``run_poll_attempts`` times.
        """
        config = self.llm_config
        try:
            run = poll_until(
                lambda: self._check_run(thread_id, run_id),
                is_done=lambda current: current.status == RunStatus.COMPLETED.value,
                is_failed=lambda current: current.status in FAILED_RUN_STATUSES,
                max_attempts=config.run_poll_attempts,
                interval=config.run_poll_interval,
                sleep=self.sleep,
            )
        except PollFailed as exc:
            failed: Run = exc.value
            details = failed.last_error.message if failed.last_error else None
            raise UpstreamError(f"Run {failed.status}", details=details) from exc
        except PollTimeout as exc:
            raise RunTimeoutError(
                f"Run {run_id} did not complete after {exc.attempts} status checks"
            ) from exc
        logger.info("Run {} completed", run_id)
        return run

    def _check_run(self, thread_id: str, run_id: str) -> Run:
        run = self.client.retrieve_run(thread_id, run_id)
        logger.debug("Run {} status: {}", run_id, run.status)
        return run


@lru_cache()
def get_assistant_service() -> AssistantService:
    """Return a singleton AssistantService built from the environment."""
    return AssistantService()
