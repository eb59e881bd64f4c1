"""Base interface for prompt services.

This module defines the Protocol that a chat completion backend must
implement to be driven by ``AIPrompter``.
"""

from typing import Optional, Protocol, Sequence

from ..context import RunContext
from .types import Message, PromptResponse


class PromptService(Protocol):
    """Protocol for chat completion services."""

    async def prompt(
        self,
        ctx: RunContext,
        messages: Sequence[Message],
        system_prompt: Optional[str] = None,
    ) -> PromptResponse:
        """Send a conversation to the model and return its reply.

        Args:
            ctx: Run context; implementations should stop waiting once it
                is cancelled
            messages: Conversation history in order
            system_prompt: Optional instruction placed before the history

        Returns:
            Completed response with usage metadata

        Raises:
            Exception: If the remote call fails
        """
        ...
