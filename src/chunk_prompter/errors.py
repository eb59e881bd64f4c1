"""Custom exception hierarchy for chunk-prompter."""

from __future__ import annotations


class PromptError(Exception):
    """Base exception for prompting failures.

    ``message`` names the failing stage. When a cause is given, it is
    appended so the final text reads like ``"failed to prompt model: <cause>"``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        if cause is not None:
            super().__init__(f"{message}: {cause}")
        else:
            super().__init__(message)


class InvalidInputError(PromptError, ValueError):
    """Caller supplied unusable input (e.g. no chunks)."""


class ConfigError(PromptError, ValueError):
    """Missing or invalid configuration such as an API key."""


class ServiceError(PromptError):
    """Remote model call failed."""


class SerializationError(PromptError):
    """Response could not be serialized for the run log."""


class LogWriteError(PromptError):
    """Appending to the run log sink failed."""


class ContextCancelledError(PromptError):
    """The run context was cancelled or its deadline passed."""

    def __init__(self, reason: str = "context canceled") -> None:
        self.reason = reason
        super().__init__(reason)


class ChunkProcessingError(PromptError):
    def __init__(self, chunk_number: int, cause: BaseException) -> None:
        self.chunk_number = chunk_number
        super().__init__(f"failed to process chunk {chunk_number}", cause)
