"""Entrypoint: python -m chat_mirror"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TextIO

from chat_mirror.application.exceptions import AppError, NotFoundError
from chat_mirror.config import settings
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import MessageDirection
from chat_mirror.infrastructure.db.store import DEFAULT_RECENT_LIMIT, SqlAlchemyMessageStore
from chat_mirror.services import read_model, settings_service

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-mirror",
        description="Inspect the local conversation mirror.",
    )
    parser.add_argument("--database", help="SQLite file (defaults to DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("conversations", help="list conversations, most recent first")

    messages = sub.add_parser("messages", help="list one conversation's messages")
    messages.add_argument("conversation_id")

    recent = sub.add_parser("recent", help="latest messages across conversations")
    recent.add_argument("--limit", type=int, default=DEFAULT_RECENT_LIMIT)

    background = sub.add_parser("background", help="show or set background streaming")
    background.add_argument("state", nargs="?", choices=["on", "off"])
    return parser


def format_conversation(conversation: Conversation) -> str:
    return (
        f"{conversation.updated_at}  {conversation.conversation_id}  "
        f"[{conversation.category}] {conversation.name} "
        f"({len(conversation.participants)} participants)"
    )


def format_message(message: Message) -> str:
    arrow = "->" if message.direction == MessageDirection.OUTGOING else "<-"
    return f"{message.created_at}  {arrow} {message.user_id or '?'}: {read_model.display_content(message)}"


async def run(args: argparse.Namespace, out: TextIO) -> None:
    async with await SqlAlchemyMessageStore.open(args.database or settings.DATABASE_PATH) as store:
        if args.command == "conversations":
            for conversation in await read_model.list_local_conversations(store):
                print(format_conversation(conversation), file=out)

        elif args.command == "messages":
            messages = await read_model.list_local_messages(store, args.conversation_id)
            if not messages and await read_model.get_local_conversation(store, args.conversation_id) is None:
                raise NotFoundError(f"Conversation {args.conversation_id} not found")
            for message in messages:
                print(format_message(message), file=out)

        elif args.command == "recent":
            for message in await read_model.list_recent_messages(store, args.limit):
                print(format_message(message), file=out)

        elif args.command == "background":
            if args.state is not None:
                await settings_service.set_background_streaming_enabled(store, args.state == "on")
            enabled = await settings_service.is_background_streaming_enabled(store)
            print(f"background streaming: {'on' if enabled else 'off'}", file=out)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args, sys.stdout))
    except AppError as exc:
        logger.error("%s", exc.detail)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
