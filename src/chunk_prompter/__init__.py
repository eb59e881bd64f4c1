"""Chunk long text and stream chat-completion responses per chunk."""

from .ai.types import Message, PromptResponse, Role
from .chunking import chunk_text_by_max_bytes
from .context import RunContext
from .errors import (
    ChunkProcessingError,
    ConfigError,
    ContextCancelledError,
    InvalidInputError,
    LogWriteError,
    PromptError,
    SerializationError,
    ServiceError,
)
from .prompter import AIPrompter, PromptOptions
from .streaming import EventChannel, PipelineState, StreamEvent

__all__ = [
    "AIPrompter",
    "ChunkProcessingError",
    "ConfigError",
    "ContextCancelledError",
    "EventChannel",
    "InvalidInputError",
    "LogWriteError",
    "Message",
    "PipelineState",
    "PromptError",
    "PromptOptions",
    "PromptResponse",
    "Role",
    "RunContext",
    "SerializationError",
    "ServiceError",
    "StreamEvent",
    "chunk_text_by_max_bytes",
]
