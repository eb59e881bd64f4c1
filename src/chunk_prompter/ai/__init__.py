"""Prompt service contract and implementations."""

from .base import PromptService
from .openai_provider import DEFAULT_MODEL, OpenAIChatService
from .types import Message, PromptResponse, Role

__all__ = [
    "PromptService",
    "OpenAIChatService",
    "DEFAULT_MODEL",
    "Message",
    "PromptResponse",
    "Role",
]
