"""Shared test fixtures.

Upstream is replaced by :class:`tests.fakes.FakeOpenAI`.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_relay.config.app_config import AppConfig
from chat_relay.config.llm_config import LlmConfig
from chat_relay.main import create_app
from chat_relay.services.assistant_service import AssistantService, get_assistant_service
from chat_relay.services.completion_service import CompletionService, get_completion_service
from chat_relay.utils.api_client import OpenAIClient

from .fakes import BASE_URL, FakeOpenAI


@pytest.fixture
def llm_config() -> LlmConfig:
    return LlmConfig(
        api_key="sk-test-key",
        base_url=BASE_URL,
        model="gpt-4",
        assistant_id="asst_test",
        _env_file=None,
    )


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def openai_client(llm_config: LlmConfig, fake_openai: FakeOpenAI) -> Iterator[OpenAIClient]:
    http_client = httpx.Client(transport=httpx.MockTransport(fake_openai.handler), base_url=BASE_URL)
    client = OpenAIClient(llm_config, http_client=http_client)
    yield client
    client.close()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def assistant_service(
    llm_config: LlmConfig,
    openai_client: OpenAIClient,
    sleeps: list[float],
) -> AssistantService:
    return AssistantService(llm_config=llm_config, client=openai_client, sleep=sleeps.append)


@pytest.fixture
def completion_service(llm_config: LlmConfig, openai_client: OpenAIClient) -> CompletionService:
    return CompletionService(llm_config=llm_config, client=openai_client)


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    """Build a TestClient for the given mode with the service overridden."""

    def _make(mode: str, llm_config: LlmConfig, service: Any) -> TestClient:
        app_config = AppConfig(relay_mode=mode, _env_file=None)
        app = create_app(app_config=app_config, llm_config=llm_config)
        dependency = get_assistant_service if mode == "assistant" else get_completion_service
        app.dependency_overrides[dependency] = lambda: service
        return TestClient(app)

    return _make
