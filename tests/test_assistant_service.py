from __future__ import annotations

import pytest

from chat_relay.config.llm_config import LlmConfig
from chat_relay.services.assistant_service import AssistantService
from chat_relay.utils.api_client import OpenAIClient
from chat_relay.utils.error_handler import (
    ConfigurationError,
    RunTimeoutError,
    UNKNOWN_UPSTREAM_ERROR,
    UpstreamError,
)

from .fakes import FakeOpenAI


def test_new_conversation_creates_exactly_one_thread(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    result = assistant_service.complete("Capital of France?")

    assert fake_openai.count("create_thread") == 1
    assert result.thread_id == "thread_1"
    assert result.run_id == "run_1"
    assert fake_openai.names() == [
        "create_thread",
        "create_message",
        "create_run",
        "retrieve_run",
        "list_messages",
    ]


def test_existing_thread_is_reused(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    result = assistant_service.complete("And of Spain?", "thread_existing")

    assert fake_openai.count("create_thread") == 0
    assert result.thread_id == "thread_existing"
    _, request, _ = fake_openai.calls[0]
    assert request.url.path == "/v1/threads/thread_existing/messages"


def test_message_and_run_payloads(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    assistant_service.complete("Capital of France?", "thread_9")

    assert fake_openai.body("create_message") == {"role": "user", "content": "Capital of France?"}
    assert fake_openai.body("create_run") == {"assistant_id": "asst_test"}


def test_every_call_sends_auth_and_beta_headers(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    assistant_service.complete("Hi")

    for _, request, _ in fake_openai.calls:
        assert request.headers["Authorization"] == "Bearer sk-test-key"
        assert request.headers["OpenAI-Beta"] == "assistants=v2"


def test_reply_has_citations_stripped(assistant_service: AssistantService) -> None:
    result = assistant_service.complete("Capital of France?")

    assert result.text == "Paris is the capital."


def test_text_parts_are_joined_and_other_parts_skipped(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    fake_openai.messages = [
        {
            "id": "msg_3",
            "role": "assistant",
            "created_at": 300,
            "content": [
                {"type": "text", "text": {"value": "First line【1:0†doc】", "annotations": []}},
                {"type": "image_file", "image_file": {"file_id": "file_1"}},
                {"type": "text", "text": {"value": "Second line", "annotations": []}},
            ],
        }
    ]

    result = assistant_service.complete("Hi", "thread_1")

    assert result.text == "First line\nSecond line"


def test_newest_assistant_message_is_selected(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    older = {
        "id": "msg_old",
        "role": "assistant",
        "created_at": 50,
        "content": [{"type": "text", "text": {"value": "old answer", "annotations": []}}],
    }
    newer = {
        "id": "msg_new",
        "role": "assistant",
        "created_at": 500,
        "content": [{"type": "text", "text": {"value": "new answer", "annotations": []}}],
    }
    fake_openai.messages = [older, newer]

    assert assistant_service.complete("Hi", "thread_1").text == "new answer"


def test_no_assistant_message_is_an_upstream_error(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    fake_openai.messages = [m for m in fake_openai.messages if m["role"] == "user"]

    with pytest.raises(UpstreamError) as excinfo:
        assistant_service.complete("Hi", "thread_1")

    assert excinfo.value.message == "No assistant response found"


def test_run_polled_until_completed(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
    sleeps: list[float],
) -> None:
    fake_openai.run_statuses = ["queued", "in_progress", "in_progress", "completed"]

    assistant_service.complete("Hi", "thread_1")

    assert fake_openai.count("retrieve_run") == 4
    assert len(sleeps) >= 4
    assert all(delay == 1.0 for delay in sleeps)


def test_failed_run_stops_polling_immediately(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    fake_openai.run_statuses = ["queued", "in_progress", "failed", "completed"]
    fake_openai.run_last_error = {"code": "server_error", "message": "Something went wrong"}

    with pytest.raises(UpstreamError) as excinfo:
        assistant_service.complete("Hi", "thread_1")

    assert fake_openai.count("retrieve_run") == 3
    assert fake_openai.count("list_messages") == 0
    assert excinfo.value.message == "Run failed"
    assert excinfo.value.details == "Something went wrong"


@pytest.mark.parametrize("status", ["cancelled", "expired"])
def test_cancelled_or_expired_run_fails(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
    status: str,
) -> None:
    fake_openai.run_statuses = [status]

    with pytest.raises(UpstreamError) as excinfo:
        assistant_service.complete("Hi", "thread_1")

    assert excinfo.value.details == UNKNOWN_UPSTREAM_ERROR
    assert fake_openai.count("retrieve_run") == 1


def test_run_that_never_finishes_times_out(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
    sleeps: list[float],
) -> None:
    fake_openai.run_statuses = ["in_progress"]

    with pytest.raises(RunTimeoutError):
        assistant_service.complete("Hi", "thread_1")

    assert fake_openai.count("retrieve_run") == 60
    assert len(sleeps) == 60
    assert fake_openai.count("list_messages") == 0


def test_timeout_is_also_a_builtin_timeout_error(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    fake_openai.run_statuses = ["queued"]

    with pytest.raises(TimeoutError):
        assistant_service.complete("Hi", "thread_1")


@pytest.mark.parametrize("step", ["create_thread", "create_message", "create_run", "retrieve_run", "list_messages"])
def test_any_failing_step_raises_upstream_error(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
    step: str,
) -> None:
    fake_openai.fail(step, 404, {"error": {"message": f"{step} exploded"}})

    with pytest.raises(UpstreamError) as excinfo:
        assistant_service.complete("Hi")

    assert excinfo.value.upstream_status == 404
    assert excinfo.value.details == f"{step} exploded"


def test_missing_assistant_id_fails_before_upstream(
    openai_client: OpenAIClient,
    fake_openai: FakeOpenAI,
) -> None:
    config = LlmConfig(api_key="sk-test-key", assistant_id=None, _env_file=None)
    service = AssistantService(llm_config=config, client=openai_client, sleep=lambda _: None)

    with pytest.raises(ConfigurationError):
        service.complete("Hi")

    assert fake_openai.calls == []


def test_new_thread_returns_identifier(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    assert assistant_service.new_thread() == "thread_1"
    assert assistant_service.new_thread() == "thread_2"
    assert fake_openai.names() == ["create_thread", "create_thread"]


def test_thread_id_is_encoded_as_one_path_segment(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    result = assistant_service.complete("hi", "../../files?x=1#")

    encoded = "..%2F..%2Ffiles%3Fx%3D1%23"
    raw_paths = [request.url.raw_path.decode("ascii").split("?", 1)[0] for _, request, _ in fake_openai.calls]
    assert raw_paths == [
        f"/v1/threads/{encoded}/messages",
        f"/v1/threads/{encoded}/runs",
        f"/v1/threads/{encoded}/runs/run_1",
        f"/v1/threads/{encoded}/messages",
    ]
    assert result.thread_id == "../../files?x=1#"


@pytest.mark.parametrize("thread_id, encoded", [("..", "%2E%2E"), (".", "%2E")])
def test_dot_thread_ids_are_not_resolved(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
    thread_id: str,
    encoded: str,
) -> None:
    assistant_service.complete("hi", thread_id)

    _, request, _ = fake_openai.calls[0]
    assert request.url.raw_path == f"/v1/threads/{encoded}/messages".encode("ascii")


def test_empty_thread_id_starts_a_new_thread(
    assistant_service: AssistantService,
    fake_openai: FakeOpenAI,
) -> None:
    result = assistant_service.complete("hi", "")

    assert fake_openai.count("create_thread") == 1
    assert result.thread_id == "thread_1"
    _, request, _ = fake_openai.calls[1]
    assert request.url.path == "/v1/threads/thread_1/messages"
