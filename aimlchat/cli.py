#!/usr/bin/env python3
"""
aimlchat CLI: chat with hosted models from the terminal.

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    models          ls-models       List models served by the API
    chats           list            List saved chats
    new             create          Start a new chat
    use             select          Make a chat the current one
    rm              remove, delete  Delete a chat
    send            say             Send a message in the current chat
    history         log             Show a chat's transcript
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from aimlchat import __version__
from aimlchat.client import AimlChat
from aimlchat.config import get_config, load_config
from aimlchat.errors import AimlChatError
from aimlchat.models import CompletionRole

ROLE_LABELS = {
    CompletionRole.USER: "you",
    CompletionRole.SYSTEM: "system",
    CompletionRole.AI: "ai",
}


def setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def cmd_models(app: AimlChat, args):
    """List models served by the API."""
    for name in app.list_models():
        print(f"  {name}")


async def cmd_chats(app: AimlChat, args):
    """List saved chats, current one marked."""
    current = app.current_chat()
    current_id = current[0] if current else None
    chats = app.manager.list_chats()
    if not chats:
        print("  No chats yet. Start one with 'aimlchat new <model>'.")
        return
    for chat_id, chat in chats:
        marker = "*" if chat_id == current_id else " "
        title = chat.title or "(untitled)"
        print(f"  {marker} {chat_id}  {chat.model.name:<30} {len(chat.history):>4} turns  {title}")


async def cmd_new(app: AimlChat, args):
    """Start a new chat."""
    chat_id = app.create_chat(args.model, title=args.title, history=not args.no_history)
    if args.use:
        app.select_chat(chat_id)
    app.save()
    print(f"  Created chat {chat_id}")


async def cmd_use(app: AimlChat, args):
    """Make a chat the current one."""
    chat_id = app.resolve_chat_id(args.chat_id)
    app.select_chat(chat_id)
    app.save()
    print(f"  Current chat is now {chat_id}")


async def cmd_rm(app: AimlChat, args):
    """Delete a chat."""
    chat_id = app.resolve_chat_id(args.chat_id)
    app.remove_chat(chat_id)
    app.save()
    print(f"  Removed chat {chat_id}")


async def cmd_send(app: AimlChat, args):
    """Send a message in the current chat."""
    if args.api_key:
        app.set_api_key(args.api_key)
    role = CompletionRole.SYSTEM if args.system else CompletionRole.USER
    try:
        reply = await app.send(" ".join(args.message), role=role)
    finally:
        # the user turn and any error turn are worth keeping either way
        app.save()
    print(reply)


async def cmd_history(app: AimlChat, args):
    """Show a chat's transcript, oldest first."""
    if args.chat_id:
        chat = app.get_chat(app.resolve_chat_id(args.chat_id))
    else:
        current = app.current_chat()
        chat = current[1] if current else None
    if chat is None:
        print("  No current chat.")
        return
    if not chat.history_enabled:
        print("  History is disabled for this chat.")
        return
    turns = list(reversed(chat.history))
    if args.last:
        turns = turns[-args.last:]
    for turn in turns:
        print(f"  [{ROLE_LABELS[turn.role]}] {turn.content}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under its name and aliases."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


async def _run(args) -> int:
    app = await AimlChat.start(get_config())
    try:
        await args.func(app, args)
    except AimlChatError as e:
        print(f"  ✗  {e}", file=sys.stderr)
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="aimlchat",
        description="aimlchat: chat sessions against the AI/ML API.",
        epilog="Run 'aimlchat <command> --help' for command-specific options.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"aimlchat {__version__}",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to config.yaml")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    _add_command(sub, ["models", "ls-models"], "List models served by the API", cmd_models)
    _add_command(sub, ["chats", "list"], "List saved chats", cmd_chats)

    def setup_new(p):
        p.add_argument("model", help="Model name, see 'aimlchat models'")
        p.add_argument("--title", "-t", default=None, help="Chat title")
        p.add_argument("--no-history", action="store_true", help="Single-turn chat, nothing remembered")
        p.add_argument("--use", action="store_true", help="Make the new chat current")

    _add_command(sub, ["new", "create"], "Start a new chat", cmd_new, setup_new)

    def setup_use(p):
        p.add_argument("chat_id", help="Chat id or unique prefix")

    _add_command(sub, ["use", "select"], "Make a chat the current one", cmd_use, setup_use)
    _add_command(sub, ["rm", "remove", "delete"], "Delete a chat", cmd_rm, setup_use)

    def setup_send(p):
        p.add_argument("message", nargs="+", help="Message text")
        p.add_argument("--system", "-s", action="store_true", help="Send as a system message")
        p.add_argument("--api-key", default=None, help="Override the configured API key")

    _add_command(sub, ["send", "say"], "Send a message in the current chat", cmd_send, setup_send)

    def setup_history(p):
        p.add_argument("chat_id", nargs="?", default=None, help="Chat id or prefix (default: current)")
        p.add_argument("--last", "-n", type=int, default=0, help="Only the last N turns")

    _add_command(sub, ["history", "log"], "Show a chat's transcript", cmd_history, setup_history)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    cfg = load_config(Path(args.config)) if args.config else get_config()
    setup_logging(cfg)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
