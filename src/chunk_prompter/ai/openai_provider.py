"""OpenAI chat completion service for chunk-prompter.

This service uses the Chat Completions API with JSON object output, which
also works against OpenAI-compatible endpoints via ``base_url``.
See: https://platform.openai.com/docs/api-reference/chat
"""

import logging
import time
from typing import Any, Optional, Sequence

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
)

from ..context import RunContext
from ..errors import ServiceError
from ..logging_utils import sanitize_error_message
from ..timeouts import DEFAULT_TIMEOUT_SEC, build_ai_httpx_timeout
from .types import Message, PromptResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.0


class OpenAIChatService:
    """Prompt service backed by ``openai.AsyncOpenAI`` chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        base_url: Optional[str] = None,
    ):
        """Initialize service.

        Args:
            api_key: OpenAI API key
            model: Model name used for every request
            timeout: Read timeout in seconds (0 = no timeout, default: 30)
            base_url: Optional OpenAI-compatible endpoint
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url

        # Retries are left to the caller
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=build_ai_httpx_timeout(timeout),
            max_retries=0,
        )

    def with_model(self, model: str) -> "OpenAIChatService":
        """Return a new service with the same credentials and another model."""
        return OpenAIChatService(
            self.api_key,
            model=model,
            timeout=self.timeout,
            base_url=self.base_url,
        )

    @staticmethod
    def format_messages(
        messages: Sequence[Message], system_prompt: Optional[str] = None
    ) -> list[dict[str, str]]:
        """Convert messages to Chat Completions format, system prompt first."""
        formatted = []
        if system_prompt is not None:
            formatted.append({"role": "system", "content": system_prompt})
        for msg in messages:
            formatted.append({"role": msg.role.value, "content": msg.text})
        return formatted

    async def _create_chat_completion(self, messages: list[dict[str, str]]) -> Any:
        return await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=DEFAULT_TEMPERATURE,
            response_format={"type": "json_object"},
        )

    async def prompt(
        self,
        ctx: RunContext,
        messages: Sequence[Message],
        system_prompt: Optional[str] = None,
    ) -> PromptResponse:
        """Send the conversation and return the first choice.

        Raises:
            ServiceError: If the API returns no choices
            ContextCancelledError: If ``ctx`` ends while waiting
            openai.APIError: If the API call fails
        """
        started = time.perf_counter()
        formatted_messages = self.format_messages(messages, system_prompt)
        request_data: dict[str, Any] = {
            "model": self.model,
            "temperature": DEFAULT_TEMPERATURE,
        }

        try:
            response = await ctx.run(self._create_chat_completion(formatted_messages))
        except AuthenticationError as e:
            logger.error(f"Authentication failed: {sanitize_error_message(str(e))}")
            raise
        except BadRequestError as e:
            logger.error(
                "Bad request (check context length, invalid params): "
                f"{sanitize_error_message(str(e))}"
            )
            raise
        except (APIConnectionError, APITimeoutError, RateLimitError) as e:
            logger.error(f"API unavailable: {type(e).__name__}: {sanitize_error_message(str(e))}")
            raise
        except APIStatusError as e:
            logger.error(f"API error ({e.status_code}): {sanitize_error_message(str(e))}")
            raise

        if not response.choices:
            raise ServiceError("no choices returned")

        content = response.choices[0].message.content or ""
        finish_reason = getattr(response.choices[0], "finish_reason", None)
        if finish_reason == "length":
            logger.warning("Response truncated due to max_tokens limit")

        usage = response.usage
        total_tokens = usage.total_tokens if usage else 0
        prompt_tokens = usage.prompt_tokens if usage else 0

        formatted_messages.append({"role": "assistant", "content": content})
        request_data["messages"] = formatted_messages
        request_data["execution_time_in_secs"] = time.perf_counter() - started

        logger.info(f"Response: {prompt_tokens} prompt / {total_tokens} total tokens")

        return PromptResponse(
            text=content,
            total_tokens=total_tokens,
            prompt_tokens=prompt_tokens,
            request_data=request_data,
        )
