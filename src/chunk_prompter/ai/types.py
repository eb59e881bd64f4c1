"""Shared message and response types exchanged with prompt services."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Conversation role of a chat message."""

    ASSISTANT = "assistant"
    USER = "user"


@dataclass(frozen=True)
class Message:
    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=Role.ASSISTANT, text=text)


@dataclass(frozen=True)
class PromptResponse:
    """Result of one completed prompt call.

    ``request_data`` is opaque pass-through data (model, messages, timing)
    kept for the run log.
    """

    text: str
    total_tokens: int = 0
    prompt_tokens: int = 0
    request_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
