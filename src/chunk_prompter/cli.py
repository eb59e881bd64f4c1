"""CLI entry point for chunk-prompter."""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence, TextIO

from .ai.openai_provider import DEFAULT_MODEL, OpenAIChatService
from .chunking import chunk_text_by_max_bytes
from .context import RunContext
from .errors import ConfigError, InvalidInputError
from .keys import DEFAULT_API_KEY_ENV, load_from_env, load_from_json
from .logging_utils import log_event, sanitize_error_message, setup_logging
from .prompter import AIPrompter, PromptOptions
from .timeouts import DEFAULT_TIMEOUT_SEC

DEFAULT_MAX_BYTES = 4000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chunk-prompter",
        description="Split a text file into byte-bounded chunks and prompt a model once per chunk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="Path to input text file ('-' for stdin)")
    parser.add_argument("-s", "--system-prompt", help="Path to system prompt file")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"Model name (default: {DEFAULT_MODEL})")
    parser.add_argument(
        "-b",
        "--max-bytes",
        type=int,
        default=DEFAULT_MAX_BYTES,
        help=f"Maximum UTF-8 bytes per chunk (default: {DEFAULT_MAX_BYTES})",
    )
    parser.add_argument(
        "--api-key-env",
        default=DEFAULT_API_KEY_ENV,
        help=f"Environment variable holding the API key (default: {DEFAULT_API_KEY_ENV})",
    )
    parser.add_argument("--api-key-file", help="JSON file holding the API key")
    parser.add_argument("--api-key-name", default="openai", help="Key name inside --api-key-file (dot notation)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SEC,
        help=f"Per-request read timeout in seconds, 0 = none (default: {DEFAULT_TIMEOUT_SEC})",
    )
    parser.add_argument("--deadline", type=float, help="Overall time limit for the whole run in seconds")
    parser.add_argument("--base-url", help="OpenAI-compatible API base URL")
    parser.add_argument("--run-log", help="Append prompt/response records to this file")
    parser.add_argument("-l", "--log", help="Path to log file for diagnostics (optional)")
    return parser


def resolve_api_key(args: argparse.Namespace) -> str:
    """Load the API key from a JSON file if given, otherwise from the environment."""
    if args.api_key_file:
        return load_from_json(args.api_key_file, args.api_key_name)
    return load_from_env(args.api_key_env)


def read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


async def run_chunks(
    prompter: AIPrompter,
    ctx: RunContext,
    chunks: Sequence[str],
    options: PromptOptions,
    out: TextIO,
    err: TextIO,
) -> tuple[int, int, Optional[Exception]]:
    """Stream chunk responses to ``out``.

    Returns:
        Tuple of (exit_code, response_count, first_error)
    """
    responses = 0
    channel = prompter.stream_chunks(ctx, chunks, options)
    try:
        async for event in channel:
            if event.is_error:
                print(f"Error: {event.error}", file=err, flush=True)
                return 1, responses, event.error
            print(event.response, file=out, flush=True)
            responses += 1
    finally:
        await channel.aclose()
    return 0, responses, None


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the chunk-prompter CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log)
    app_started = time.perf_counter()

    try:
        api_key = resolve_api_key(args)
        text = read_text(args.input)
        system_prompt = (
            Path(args.system_prompt).read_text(encoding="utf-8") if args.system_prompt else None
        )
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.max_bytes <= 0:
        print("Error: --max-bytes must be positive", file=sys.stderr)
        sys.exit(2)

    try:
        chunks = chunk_text_by_max_bytes(text, args.max_bytes)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    service = OpenAIChatService(
        api_key,
        model=args.model,
        timeout=args.timeout,
        base_url=args.base_url,
    )
    ctx = RunContext.with_timeout(args.deadline) if args.deadline else RunContext()

    log_event(
        "cli_start",
        model=args.model,
        input_file=args.input,
        input_bytes=len(text.encode("utf-8")),
        max_bytes=args.max_bytes,
        chunk_count=len(chunks),
        has_system_prompt=system_prompt is not None,
        timeout=args.timeout,
    )

    exit_code = 0
    responses = 0
    error: Optional[Exception] = None
    reason = "completed"
    try:
        run_log = open(args.run_log, "a", encoding="utf-8") if args.run_log else None
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        options = PromptOptions(system_prompt=system_prompt, log_buffer=run_log)
        exit_code, responses, error = asyncio.run(
            run_chunks(AIPrompter(service), ctx, chunks, options, sys.stdout, sys.stderr)
        )
        if exit_code != 0:
            reason = "error"
    except KeyboardInterrupt:
        print("\n[Cancelled by user]", file=sys.stderr)
        exit_code = 130
        reason = "interrupted"
    finally:
        if run_log is not None:
            run_log.close()
        log_event(
            "cli_stop",
            level=logging.INFO if exit_code == 0 else logging.ERROR,
            reason=reason,
            uptime_ms=round((time.perf_counter() - app_started) * 1000, 1),
            responses=responses,
            error_type=type(error).__name__ if error is not None else None,
            error=sanitize_error_message(str(error)) if error is not None else None,
        )

    sys.exit(exit_code)
