"""Synchronous HTTP client for the OpenAI REST API, built on httpx.

Each method performs exactly one request and returns a typed model from
:mod:`chat_relay.models.upstream`.  Non-success statuses, transport
failures and unexpected payload shapes all surface as
:class:`~chat_relay.utils.error_handler.UpstreamError`.  Nothing is
retried here.
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..config.llm_config import LlmConfig
from ..models.upstream import ChatCompletion, ErrorBody, MessageList, Run, Thread, ThreadMessage
from .error_handler import ConfigurationError, UpstreamError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Any, step: str) -> ModelT:
    """Validate ``payload`` against ``model`` or raise ``UpstreamError``."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        logger.error("Unexpected response shape from {}: {}", step, exc)
        raise UpstreamError(
            f"Unexpected response shape from {step}",
            details=str(exc.errors()[0].get("msg")) if exc.errors() else None,
        ) from exc


def upstream_error_message(response: httpx.Response) -> Optional[str]:
    """Extract ``error.message`` from an upstream error body, if any."""
    try:
        body = ErrorBody.model_validate(response.json())
    except (ValueError, PydanticValidationError):
        return None
    return body.error.message if body.error else None


class OpenAIClient:
    """Thin wrapper over the chat-completion and assistants endpoints.

    Parameters
    ----------
    llm_config: LlmConfig
        Supplies the API key, base URL, timeout and feature-version header.
    http_client: httpx.Client, optional
        Pre-built client, mainly for tests (``httpx.MockTransport``).  When
        omitted one is created from ``llm_config``.
    """

    def __init__(self, llm_config: LlmConfig, http_client: Optional[httpx.Client] = None) -> None:
        self.llm_config = llm_config
        self._http = http_client or httpx.Client(
            base_url=llm_config.base_url,
            timeout=llm_config.timeout,
        )

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Transport

    @staticmethod
    def _path(*segments: str) -> str:
        """Join segments into a path, each percent-encoded as a single segment.

        ``quote`` leaves dots alone, so ``.`` and ``..`` are encoded by hand
        to keep httpx from resolving them as dot segments.
        """
        encoded = []
        for segment in segments:
            if segment in (".", ".."):
                encoded.append(segment.replace(".", "%2E"))
            else:
                encoded.append(quote(segment, safe=""))
        return "/" + "/".join(encoded)

    def _headers(self, beta: bool) -> dict[str, str]:
        if not self.llm_config.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        headers = {
            "Authorization": f"Bearer {self.llm_config.api_key}",
            "Content-Type": "application/json",
        }
        if beta:
            headers["OpenAI-Beta"] = self.llm_config.assistants_beta
        return headers

    def _request(
        self,
        method: str,
        path: str,
        step: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        beta: bool = False,
    ) -> Any:
        headers = self._headers(beta)
        logger.debug("Upstream {} {} ({})", method, path, step)
        try:
            response = self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Upstream request for {} failed: {}", step, exc)
            raise UpstreamError(f"Failed to {step}", details=str(exc) or None) from exc

        if not response.is_success:
            details = upstream_error_message(response)
            logger.error(
                "OpenAI API error during {}: status={} body={}",
                step,
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                f"Failed to {step}",
                details=details,
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Unexpected response shape from {step}", details="Response is not JSON") from exc

    # ------------------------------------------------------------------
    # Chat completions

    def create_chat_completion(self, payload: dict[str, Any]) -> ChatCompletion:
        step = "create chat completion"
        data = self._request("POST", "/chat/completions", step, json=payload)
        return parse_payload(ChatCompletion, data, step)

    # ------------------------------------------------------------------
    # Assistants: threads, messages, runs

    def create_thread(self) -> Thread:
        step = "create thread"
        data = self._request("POST", "/threads", step, json={}, beta=True)
        return parse_payload(Thread, data, step)

    def create_message(self, thread_id: str, content: str) -> ThreadMessage:
        step = "add message to thread"
        data = self._request(
            "POST",
            self._path("threads", thread_id, "messages"),
            step,
            json={"role": "user", "content": content},
            beta=True,
        )
        return parse_payload(ThreadMessage, data, step)

    def create_run(self, thread_id: str, assistant_id: str) -> Run:
        step = "start run"
        data = self._request(
            "POST",
            self._path("threads", thread_id, "runs"),
            step,
            json={"assistant_id": assistant_id},
            beta=True,
        )
        return parse_payload(Run, data, step)

    def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        step = "check run status"
        data = self._request("GET", self._path("threads", thread_id, "runs", run_id), step, beta=True)
        return parse_payload(Run, data, step)

    def list_messages(self, thread_id: str) -> MessageList:
        step = "list thread messages"
        data = self._request(
            "GET",
            self._path("threads", thread_id, "messages"),
            step,
            params={"order": "desc"},
            beta=True,
        )
        return parse_payload(MessageList, data, step)
