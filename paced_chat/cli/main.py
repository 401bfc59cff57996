"""CLI: paced-chat chat, history, reset, render, config validate."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from ..config import load_config, validate_config
from ..core.conversation_log import message_to_dict
from ..core.session import Session
from ..markdown import format_time, render
from ..storage import open_store
from ..types import Origin


def _get_session(config_path: str | None = None):
    config = load_config(config_path)
    store = open_store(config.storage)
    return Session.open(store, config.storage), config


def cmd_chat(args):
    """Start the interactive chat, or replay prompts headlessly."""
    config = load_config(args.config)
    if args.url:
        config.gateway.url = args.url

    replay_prompts = None
    if args.replay:
        from ..tui.state import load_replay_prompts

        replay_prompts = load_replay_prompts(args.replay)
        if not replay_prompts:
            print(f"No prompts found in {args.replay}", file=sys.stderr)
            sys.exit(1)
        print(f"Loaded {len(replay_prompts)} prompts from {args.replay}", file=sys.stderr)

    if args.headless:
        if not replay_prompts:
            print("--headless requires --replay", file=sys.stderr)
            sys.exit(1)
        asyncio.run(_run_headless(config, replay_prompts, burst=args.burst, output=args.output))
        return

    from ..tui.app import run_chat

    run_chat(config=config, replay_prompts=replay_prompts)


async def _run_headless(config, prompts: list[str], burst: bool, output: str | None) -> None:
    from ..core.dispatch import DispatchEngine
    from ..tui.headless import HeadlessRunner

    engine = DispatchEngine.from_config(config)
    try:
        await HeadlessRunner(engine, burst=burst).run(prompts, output=output or ".")
    finally:
        await engine.aclose()


def cmd_history(args):
    """Print the stored conversation of the current session."""
    session, config = _get_session(args.config)
    messages = session.log_store.load(session.id)

    if not messages:
        print(f"No conversation stored for session {session.id}.")
        return

    if args.json:
        print(json.dumps([message_to_dict(m) for m in messages], indent=2, ensure_ascii=False))
        return

    print(f"Session: {session.id} ({len(messages)} messages)")
    print("=" * 60)
    for m in messages:
        who = "You" if m.origin is Origin.USER else "Agent"
        print(f"[{format_time(m.sent_at)}] {who}: {m.text}")


def cmd_reset(args):
    """End the session: forget the identifier and the conversation."""
    session, config = _get_session(args.config)
    session.end()
    print(f"Session {session.id} cleared.")


def cmd_render(args):
    """Render markdown-lite text to HTML."""
    text = args.text if args.text is not None else sys.stdin.read()
    print(render(text))


def cmd_config_validate(args):
    """Validate config file."""
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    print("Config is valid.")
    print(f"  Gateway:   {config.gateway.url} (timeout {config.gateway.timeout:g}s)")
    print(f"  Storage:   {config.storage.backend}")
    print(f"  Questions: {len(config.quick_questions)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paced-chat",
        description="Session-scoped chat client with paced multi-part replies",
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # chat
    chat_parser = subparsers.add_parser("chat", help="Interactive TUI chat")
    chat_parser.add_argument("--url", help="Override gateway.url")
    chat_parser.add_argument(
        "--replay",
        metavar="FILE",
        help="Replay prompts from a chat-transcript.json or a text file (one prompt per line)",
    )
    chat_parser.add_argument(
        "--headless",
        action="store_true",
        help="Run replay without TUI (requires --replay)",
    )
    chat_parser.add_argument(
        "--burst",
        action="store_true",
        help="Headless: submit every prompt at once instead of one per turn",
    )
    chat_parser.add_argument("--output", "-o", help="Headless: transcript directory")

    # history
    history_parser = subparsers.add_parser("history", help="Show the stored conversation")
    history_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    # reset
    subparsers.add_parser("reset", help="Clear the session and its conversation")

    # render
    render_parser = subparsers.add_parser("render", help="Render markdown-lite text to HTML")
    render_parser.add_argument("text", nargs="?", help="Text to render (default: stdin)")

    # config validate
    config_parser = subparsers.add_parser("config", help="Config operations")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    if args.command == "chat" and not args.headless:
        # stderr output would tear the TUI; route records to the Textual console
        from textual.logging import TextualHandler

        logging.basicConfig(level=level, handlers=[TextualHandler()])
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "chat":
        cmd_chat(args)
    elif args.command == "history":
        cmd_history(args)
    elif args.command == "reset":
        cmd_reset(args)
    elif args.command == "render":
        cmd_render(args)
    elif args.command == "config":
        if args.config_command == "validate":
            cmd_config_validate(args)
        else:
            print("Usage: paced-chat config validate")
            sys.exit(1)


if __name__ == "__main__":
    main()
