"""Prompt orchestration: single request/response cycles and chunk streams."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from .ai.base import PromptService
from .ai.types import Message, PromptResponse
from .context import RunContext
from .errors import (
    ChunkProcessingError,
    ContextCancelledError,
    InvalidInputError,
    LogWriteError,
    SerializationError,
    ServiceError,
)
from .logging_utils import estimate_message_chars, log_event, sanitize_error_message
from .streaming import EventChannel, PipelineState, StreamEvent


class LogSink(Protocol):
    """Append-only text sink such as ``io.StringIO`` or an open file."""

    def write(self, s: str) -> Any:
        ...


@dataclass
class PromptOptions:
    """Per-call settings.

    Attributes:
        run_id: Correlates log entries of one call; generated when missing
        system_prompt: Instruction placed before the conversation
        log_buffer: Sink that receives one record per successful call
    """

    run_id: Optional[str] = None
    system_prompt: Optional[str] = None
    log_buffer: Optional[LogSink] = None


class AIPrompter:
    """Wraps a prompt service to manage prompts, run logs, and chunk streams."""

    def __init__(self, service: PromptService):
        self.service = service

    @property
    def service_name(self) -> str:
        return type(self.service).__name__

    async def single_prompt(
        self,
        ctx: RunContext,
        messages: Sequence[Message],
        options: Optional[PromptOptions] = None,
    ) -> PromptResponse:
        """Prompt the model once with an optional system prompt and history.

        Raises:
            ServiceError: The service call failed
            SerializationError: The response could not be encoded for the log
            LogWriteError: The log sink rejected the record
            ContextCancelledError: ``ctx`` ended while the call was in flight
        """
        opts = options or PromptOptions()
        run_id = opts.run_id or str(uuid.uuid4())
        history = list(messages)

        log_event(
            "prompt_request",
            run_id=run_id,
            service=self.service_name,
            message_count=len(history),
            input_chars=estimate_message_chars(history),
            has_system_prompt=opts.system_prompt is not None,
        )

        started = time.perf_counter()
        try:
            response = await self.service.prompt(
                ctx, history, system_prompt=opts.system_prompt
            )
        except ContextCancelledError as e:
            self._log_error(run_id, "prompt", started, e)
            raise
        except Exception as e:
            self._log_error(run_id, "prompt", started, e)
            raise ServiceError("failed to prompt model", e) from e

        try:
            self._append_to_log(run_id, opts, response)
        except SerializationError as e:
            self._log_error(run_id, "run_log", started, e)
            raise SerializationError("failed to append to log file", e) from e
        except LogWriteError as e:
            self._log_error(run_id, "run_log", started, e)
            raise LogWriteError("failed to append to log file", e) from e

        log_event(
            "prompt_response",
            run_id=run_id,
            service=self.service_name,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
            output_chars=len(response.text),
            prompt_tokens=response.prompt_tokens,
            total_tokens=response.total_tokens,
        )
        return response

    def _log_error(self, run_id: str, stage: str, started: float, error: Exception) -> None:
        log_event(
            "prompt_error",
            level=logging.ERROR,
            run_id=run_id,
            service=self.service_name,
            stage=stage,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
            error_type=type(error).__name__,
            error=sanitize_error_message(str(error)),
        )

    @staticmethod
    def _append_to_log(run_id: str, opts: PromptOptions, response: PromptResponse) -> None:
        if opts.log_buffer is None:
            return

        try:
            data = json.dumps(response.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError("failed to marshal prompt response", e) from e

        record = f"RunID: {run_id}\n"
        if opts.system_prompt is not None:
            record += f" Prompt: {opts.system_prompt}\n"
        record += f"Response: {data}\n\n"

        try:
            written = opts.log_buffer.write(record)
        except Exception as e:
            raise LogWriteError("failed to write to log buffer", e) from e
        if isinstance(written, int) and written < len(record):
            raise LogWriteError(
                f"short write to log buffer ({written} of {len(record)} characters)"
            )

    def stream_chunks(
        self,
        ctx: RunContext,
        chunks: Sequence[str],
        options: Optional[PromptOptions] = None,
    ) -> EventChannel:
        """Prompt once per chunk, in order, relaying results over a channel.

        Must be called with a running event loop. Iterate the returned
        channel until it closes; an error event is always the last event.
        """
        channel = EventChannel()
        chunk_list = list(chunks)

        if not chunk_list:
            channel.state = PipelineState.FAILED
            channel.send_nowait(StreamEvent.of_error(InvalidInputError("no chunks provided")))
            channel.close()
            return channel

        opts = options or PromptOptions()
        # Each chunk gets its own run id
        chunk_opts = PromptOptions(
            system_prompt=opts.system_prompt,
            log_buffer=opts.log_buffer,
        )
        task = asyncio.get_running_loop().create_task(
            self._produce(ctx, chunk_list, chunk_opts, channel)
        )
        channel.attach_producer(task)
        return channel

    async def _produce(
        self,
        ctx: RunContext,
        chunks: list[str],
        opts: PromptOptions,
        channel: EventChannel,
    ) -> None:
        channel.state = PipelineState.EMITTING
        processed = 0
        emitted = 0
        error: Optional[Exception] = None

        log_event(
            "stream_start",
            chunk_count=len(chunks),
            has_system_prompt=opts.system_prompt is not None,
        )

        try:
            for number, chunk in enumerate(chunks, start=1):
                cancelled = ctx.err()
                if cancelled is not None:
                    error = cancelled
                    channel.state = PipelineState.CANCELLED
                    await channel.send(StreamEvent.of_error(cancelled))
                    return

                try:
                    response = await self.single_prompt(ctx, [Message.user(chunk)], opts)
                    text = response.text.strip()
                except Exception as e:
                    error = ChunkProcessingError(number, e)
                    error.__cause__ = e
                    if isinstance(e, ContextCancelledError):
                        channel.state = PipelineState.CANCELLED
                    else:
                        channel.state = PipelineState.FAILED
                    await channel.send(StreamEvent.of_error(error))
                    return

                processed += 1
                if text:
                    await channel.send(StreamEvent.of_response(text))
                    emitted += 1

            channel.state = PipelineState.COMPLETED
        except asyncio.CancelledError:
            channel.state = PipelineState.CANCELLED
            raise
        finally:
            channel.close()
            log_event(
                "stream_stop",
                level=logging.ERROR if error is not None else logging.INFO,
                state=channel.state.value,
                chunks_processed=processed,
                events_emitted=emitted,
                error_type=type(error).__name__ if error is not None else None,
                error=sanitize_error_message(str(error)) if error is not None else None,
            )
