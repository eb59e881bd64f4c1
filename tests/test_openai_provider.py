"""Tests for the OpenAI chat completion service."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from chunk_prompter.ai.openai_provider import (
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    OpenAIChatService,
)
from chunk_prompter.ai.types import Message
from chunk_prompter.context import DEADLINE_EXCEEDED_REASON, RunContext
from chunk_prompter.errors import ContextCancelledError, ServiceError


def make_completion(content, total_tokens=30, prompt_tokens=21, with_usage=True):
    choices = []
    if content is not None:
        choices.append(
            SimpleNamespace(
                message=SimpleNamespace(content=content),
                finish_reason="stop",
            )
        )
    usage = (
        SimpleNamespace(total_tokens=total_tokens, prompt_tokens=prompt_tokens)
        if with_usage
        else None
    )
    return SimpleNamespace(choices=choices, usage=usage)


def make_service(return_value=None, side_effect=None, **kwargs):
    service = OpenAIChatService("sk-test-key-1234567890abcdef", **kwargs)
    service.client = MagicMock()
    service.client.chat = MagicMock()
    service.client.chat.completions = MagicMock()
    service.client.chat.completions.create = AsyncMock(
        return_value=return_value, side_effect=side_effect
    )
    return service


def test_defaults():
    service = OpenAIChatService("sk-test-key-1234567890abcdef")
    assert service.model == DEFAULT_MODEL == "gpt-4o-mini"
    assert service.timeout == 30
    assert service.base_url is None


def test_with_model_keeps_settings():
    service = OpenAIChatService(
        "sk-test-key-1234567890abcdef",
        timeout=12,
        base_url="https://llm.example.test/v1",
    )

    clone = service.with_model("gpt-4o")

    assert clone is not service
    assert clone.model == "gpt-4o"
    assert service.model == DEFAULT_MODEL
    assert clone.api_key == service.api_key
    assert clone.timeout == 12
    assert clone.base_url == "https://llm.example.test/v1"


def test_client_timeout_and_retries():
    service = OpenAIChatService("sk-test-key-1234567890abcdef", timeout=45)
    assert service.client.max_retries == 0
    assert isinstance(service.client.timeout, httpx.Timeout)
    assert service.client.timeout.read == 45


def test_format_messages_puts_system_prompt_first():
    formatted = OpenAIChatService.format_messages(
        [Message.user("hi"), Message.assistant("hello")],
        system_prompt="Reply in JSON.",
    )
    assert formatted == [
        {"role": "system", "content": "Reply in JSON."},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]


def test_format_messages_without_system_prompt():
    formatted = OpenAIChatService.format_messages([Message.user("hi")])
    assert formatted == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_prompt_sends_request_and_builds_response():
    service = make_service(return_value=make_completion('{"ok": true}'))

    response = await service.prompt(
        RunContext(), [Message.user("chunk text")], system_prompt="Summarize."
    )

    kwargs = service.client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == DEFAULT_MODEL
    assert kwargs["temperature"] == DEFAULT_TEMPERATURE
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "Summarize."}
    assert kwargs["messages"][1] == {"role": "user", "content": "chunk text"}

    assert response.text == '{"ok": true}'
    assert response.total_tokens == 30
    assert response.prompt_tokens == 21
    data = response.request_data
    assert data["model"] == DEFAULT_MODEL
    assert data["temperature"] == 0.0
    assert data["messages"][-1] == {"role": "assistant", "content": '{"ok": true}'}
    assert len(data["messages"]) == 3
    assert data["execution_time_in_secs"] >= 0


@pytest.mark.asyncio
async def test_prompt_without_usage_reports_zero_tokens():
    service = make_service(return_value=make_completion("{}", with_usage=False))

    response = await service.prompt(RunContext(), [Message.user("x")])

    assert response.total_tokens == 0
    assert response.prompt_tokens == 0


@pytest.mark.asyncio
async def test_prompt_raises_when_no_choices():
    service = make_service(return_value=make_completion(None))

    with pytest.raises(ServiceError, match="no choices returned"):
        await service.prompt(RunContext(), [Message.user("x")])


@pytest.mark.asyncio
async def test_prompt_propagates_client_errors():
    service = make_service(side_effect=RuntimeError("socket closed"))

    with pytest.raises(RuntimeError, match="socket closed"):
        await service.prompt(RunContext(), [Message.user("x")])


@pytest.mark.asyncio
async def test_prompt_skips_request_when_context_cancelled():
    service = make_service(return_value=make_completion("{}"))
    ctx = RunContext()
    ctx.cancel("stopped early")

    with pytest.raises(ContextCancelledError, match="stopped early"):
        await service.prompt(ctx, [Message.user("x")])

    assert service.client.chat.completions.create.await_count == 0


@pytest.mark.asyncio
async def test_prompt_honors_context_deadline():
    async def slow_create(**kwargs):
        await asyncio.sleep(10)
        return make_completion("{}")

    service = make_service(side_effect=slow_create)

    with pytest.raises(ContextCancelledError) as exc_info:
        await service.prompt(RunContext.with_timeout(0.02), [Message.user("x")])

    assert exc_info.value.reason == DEADLINE_EXCEEDED_REASON
