"""CLI entry point for confab."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import AppConfig, _get_config_path, load_config

logger = logging.getLogger(__name__)


def _print_setup_guide(config_path: Path) -> None:
    print(
        f"\nTo get started, create {config_path} with:\n\n"
        "ai:\n"
        '  base_url: "https://your-ai-endpoint/v1"\n'
        '  api_key: "your-api-key"\n'
        '  model: "gpt-4o-mini"\n'
        "chat:\n"
        "  multiline: false\n"
        '  terminator: "$"\n'
        "\nOr set environment variables:\n"
        "  AI_CHAT_BASE_URL=https://your-ai-endpoint/v1\n"
        "  AI_CHAT_API_KEY=your-api-key\n"
        "  AI_CHAT_MODEL=gpt-4o-mini\n",
        file=sys.stderr,
    )


def _load_config_or_exit(config_path: Path | None) -> AppConfig:
    path = config_path or _get_config_path()
    try:
        return load_config(path)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        _print_setup_guide(path)
        sys.exit(1)


def _configure_logging(config: AppConfig, debug: bool) -> None:
    """Send log records to a file so they never interleave with the prompt."""
    level = logging.DEBUG if debug else getattr(logging, config.app.log_level, logging.WARNING)
    log_file = config.app.resolved_log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.model:
        config.ai.model = args.model
    if args.format is not None:
        config.chat.format_output = args.format
    if args.style:
        config.chat.style = args.style
    if args.multiline is not None:
        config.chat.multiline = args.multiline
    if args.terminator is not None:
        config.chat.terminator = args.terminator
    if args.user:
        config.chat.user = args.user


def _test_connection(config: AppConfig) -> None:
    from .services.ai_service import AIService, AIServiceError

    ai_service = AIService(config.ai)

    print("Config:")
    print(f"  Endpoint: {config.ai.base_url}")
    print(f"  Model:    {config.ai.model}")
    print(f"  SSL:      {'enabled' if config.ai.verify_ssl else 'disabled'}")

    print("\n1. Listing models...")
    valid, message, models = ai_service.validate_connection()
    if not valid:
        print(f"   FAILED - {message}")
        sys.exit(1)
    print(f"   OK - {len(models)} model(s) available")
    for m in models[:10]:
        print(f"     - {m}")

    print(f"\n2. Sending test prompt to {config.ai.model}...")
    try:
        reply = ai_service.complete([{"role": "user", "content": "Say hello in one sentence."}])
    except AIServiceError as e:
        print(f"   FAILED - {e}")
        sys.exit(1)
    print(f"   OK - Response: {reply.strip() or '(empty response)'}")

    print("\nAll checks passed.")


def _run_chat(config: AppConfig) -> None:
    """Launch the interactive chat loop."""
    from .cli import renderer
    from .cli.chat import Chat, ChatOptions
    from .services.ai_service import AIService
    from .services.chat_session import ChatSession

    if not renderer.is_valid_style(config.chat.style):
        print(f"Error: unknown style '{config.chat.style}'", file=sys.stderr)
        sys.exit(1)

    options = ChatOptions(
        model_id=config.ai.model,
        format_output=config.chat.format_output,
        style_name=config.chat.style,
        multiline=config.chat.multiline,
        terminator=config.chat.terminator,
    )
    ai_service = AIService(config.ai)
    session = ChatSession(ai_service, config.ai.model, config.ai.system_prompt)
    try:
        chat = Chat(
            config.chat.user,
            session,
            options,
            system_prefix=config.chat.system_prefix,
            history_path=config.app.history_path if config.chat.history else None,
        )
    except Exception as e:
        logger.exception("Failed to start the line editor")
        print(f"Error: {e}", file=sys.stderr)
        ai_service.close()
        sys.exit(1)

    renderer.render_welcome(options.model_id, config.chat.system_prefix, options.multiline, options.terminator)
    try:
        with chat:
            chat.start()
    finally:
        ai_service.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="confab",
        description="Chat with an OpenAI-compatible language model from the terminal",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml (default: ~/.confab)")
    parser.add_argument("-m", "--model", default=None, help="Override AI model (e.g., gpt-4o)")
    parser.add_argument(
        "--format",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Render responses as markdown (default: on)",
    )
    parser.add_argument("-s", "--style", default=None, help="Code highlight style for formatted output")
    parser.add_argument(
        "--multiline",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Read multi-line messages ended by the terminator",
    )
    parser.add_argument("-t", "--term", dest="terminator", default=None, help="Multi-line input terminator")
    parser.add_argument("-u", "--user", default=None, help="Display name shown in the prompt")
    parser.add_argument("--debug", action="store_true", help="Write debug logs to the log file")
    parser.add_argument("--test", action="store_true", help="Test connection settings and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    config = _load_config_or_exit(args.config)
    _apply_overrides(config, args)
    if config.chat.multiline and not config.chat.terminator:
        print("Configuration error: a non-empty terminator is required for multi-line input", file=sys.stderr)
        sys.exit(1)
    _configure_logging(config, args.debug)

    if args.test:
        _test_connection(config)
        return

    _run_chat(config)


if __name__ == "__main__":
    main()
