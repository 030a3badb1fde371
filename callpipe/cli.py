"""callpipe CLI entry point.

Usage:
    callpipe run [--config callpipe.yaml]
    callpipe providers
    callpipe init [--output callpipe.yaml]
    callpipe transcribe recording.wav [--no-answer]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from callpipe.logging_setup import setup_logging


def _load(args: argparse.Namespace):
    from callpipe.config import load_config
    from callpipe.errors import ConfigError

    if args.config and not Path(args.config).exists():
        logger.error(f"Config file not found: {args.config}")
        sys.exit(1)
    # No --config means the environment / .env
    try:
        return load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)


def cmd_run(args: argparse.Namespace) -> None:
    """Run the callpipe server."""
    config = _load(args)
    setup_logging(config.logging.level)

    logger.info(f"callpipe starting with config: {args.config or 'environment'}")
    logger.info(f"Listening on: {args.host or config.server.listen_host}:{args.port or config.server.listen_port}")
    logger.info(f"Media stream URL: {config.server.stream_url}")
    logger.info(f"Prompt profile: {config.pipeline.prompt_profile}")

    from callpipe.server import run_server

    run_server(config, host=args.host, port=args.port)


def cmd_providers(args: argparse.Namespace) -> None:
    """List registered providers."""
    from callpipe.providers.registry import provider_registry

    groups = [
        ("STT", provider_registry.available_stt),
        ("LLM", provider_registry.available_llm),
        ("Notifier", provider_registry.available_notifiers),
        ("Telephony", provider_registry.available_telephony),
    ]
    print("\nAvailable callpipe Providers:")
    print("=" * 40)
    for kind, names in groups:
        print(f"  {kind:<12} {', '.join(names)}")
    print()


def cmd_init(args: argparse.Namespace) -> None:
    """Generate a starter configuration file."""
    output = Path(args.output)

    if output.exists() and not args.force:
        logger.error(f"File already exists: {output}. Use --force to overwrite.")
        sys.exit(1)

    from callpipe.config import DEFAULT_CONFIG_YAML

    output.write_text(DEFAULT_CONFIG_YAML)
    print(f"Configuration written to: {output}")
    print(f"\nEdit the file and run: callpipe run --config {output}")


async def _transcribe(config, wav: Path, answer: bool) -> int:
    from callpipe.pipeline.generator import ResponseGenerator
    from callpipe.pipeline.prompts import get_profile
    from callpipe.pipeline.transcriber import TranscriptionStage
    from callpipe.providers.registry import provider_registry

    openai_cfg = config.openai
    stt = provider_registry.create_stt(
        config.pipeline.stt_provider,
        api_key=openai_cfg.api_key,
        model=openai_cfg.stt_model,
        base_url=openai_cfg.base_url,
        max_retries=openai_cfg.max_retries,
    )
    try:
        transcript = await TranscriptionStage(stt).transcribe(wav)
    finally:
        await stt.close()

    print("\nTranscript:")
    print(transcript or "(no speech detected)")
    if not answer or not transcript:
        return 0

    llm = provider_registry.create_llm(
        config.pipeline.llm_provider,
        api_key=openai_cfg.api_key,
        model=openai_cfg.llm_model,
        base_url=openai_cfg.base_url,
        max_retries=openai_cfg.max_retries,
    )
    generator = ResponseGenerator(
        llm,
        get_profile(config.pipeline.prompt_profile),
        config.pipeline.summary_char_budget,
    )
    try:
        result = await generator.generate(transcript)
    finally:
        await llm.close()

    print("\nAnswer:")
    print(result.full_answer)
    print("\nSummary:")
    print(result.summary)
    return 0


def cmd_transcribe(args: argparse.Namespace) -> None:
    """Transcribe a WAV file and optionally generate an answer for it."""
    wav = Path(args.wav)
    if not wav.exists():
        logger.error(f"Audio file not found: {wav}")
        sys.exit(1)

    config = _load(args)
    setup_logging(config.logging.level)

    from callpipe.errors import CallPipeError

    try:
        code = asyncio.run(_transcribe(config, wav, answer=not args.no_answer))
    except CallPipeError as e:
        logger.error(str(e))
        sys.exit(1)
    sys.exit(code)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="callpipe",
        description="callpipe - call audio to transcript, answer and WhatsApp notification",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # `callpipe run`
    run_parser = subparsers.add_parser("run", help="Run the callpipe server")
    run_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a YAML config file (default: environment / .env)",
    )
    run_parser.add_argument("--host", default=None, help="Override the listen host")
    run_parser.add_argument("--port", type=int, default=None, help="Override the listen port")

    # `callpipe providers`
    subparsers.add_parser("providers", help="List available providers")

    # `callpipe init`
    init_parser = subparsers.add_parser("init", help="Generate a starter config file")
    init_parser.add_argument(
        "--output", "-o",
        default="callpipe.yaml",
        help="Output file path (default: callpipe.yaml)",
    )
    init_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite existing file",
    )

    # `callpipe transcribe`
    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe a WAV file")
    transcribe_parser.add_argument("wav", help="Path to the WAV file")
    transcribe_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a YAML config file (default: environment / .env)",
    )
    transcribe_parser.add_argument(
        "--no-answer",
        action="store_true",
        help="Only print the transcript, skip answer generation",
    )

    args = parser.parse_args(argv)

    if args.command == "run":
        cmd_run(args)
    elif args.command == "providers":
        cmd_providers(args)
    elif args.command == "init":
        cmd_init(args)
    elif args.command == "transcribe":
        cmd_transcribe(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
