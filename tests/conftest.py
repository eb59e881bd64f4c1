"""Pytest configuration and fixtures for chunk-prompter tests."""

import logging
from typing import Callable, Optional, Sequence, Union

import pytest

from chunk_prompter.ai.types import Message, PromptResponse
from chunk_prompter.context import RunContext


Reply = Union[str, PromptResponse, Exception]


class FakePromptService:
    """In-memory prompt service returning scripted replies in order."""

    def __init__(
        self,
        replies: Sequence[Reply],
        on_call: Optional[Callable[[RunContext, int], None]] = None,
    ):
        self.replies = list(replies)
        self.on_call = on_call
        self.calls: list[tuple[list[Message], Optional[str]]] = []

    async def prompt(
        self,
        ctx: RunContext,
        messages: Sequence[Message],
        system_prompt: Optional[str] = None,
    ) -> PromptResponse:
        self.calls.append((list(messages), system_prompt))
        if self.on_call is not None:
            self.on_call(ctx, len(self.calls))
        reply = self.replies[len(self.calls) - 1]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, PromptResponse):
            return reply
        return PromptResponse(
            text=reply,
            total_tokens=10,
            prompt_tokens=7,
            request_data={"model": "fake-model"},
        )


@pytest.fixture
def fake_service_factory():
    """Build a FakePromptService from scripted replies."""
    return FakePromptService


@pytest.fixture
def ctx():
    return RunContext()


@pytest.fixture(autouse=True)
def reset_logging_disable():
    """Undo ``logging.disable`` calls made by setup_logging(None)."""
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture
def mock_api_key(monkeypatch):
    """Mock API key environment variable."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-1234567890abcdef1234567890abcdef")
