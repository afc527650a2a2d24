"""Command-line interface for Maildir Message.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from maildir_message import __version__
from maildir_message.config import get_settings
from maildir_message.context import MessageContext
from maildir_message.exceptions import InvalidMaildirError
from maildir_message.maildir.folder import list_messages, sort_by_date
from maildir_message.message import Message

logger = structlog.get_logger()

SHOW_HEADERS = ("From", "To", "Subject", "Date")

MARK_ACTIONS = {
    "read": Message.mark_read,
    "unread": Message.mark_unread,
    "flagged": Message.mark_flagged,
    "unflagged": Message.mark_unflagged,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maildir-message", description="Inspect Maildir messages")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Print one summary line per message in a folder")
    list_parser.add_argument("folder", type=Path, help="Maildir folder")
    list_parser.add_argument(
        "--filter",
        default="all",
        help="Filter expression: all, new, HEADER:<names>:<regex> or a summary regex",
    )
    list_parser.add_argument(
        "--format",
        default=None,
        help="Summary template (default: settings index_format)",
    )
    list_parser.add_argument("--sort-by-date", action="store_true", help="Order by message date")
    list_parser.add_argument("--reverse", action="store_true", help="Newest first when sorting")

    show_parser = subparsers.add_parser("show", help="Print a message's main headers and body")
    show_parser.add_argument("path", type=Path, help="Message file")
    show_parser.add_argument("--mark-read", action="store_true", help="Mark the message seen afterwards")

    headers_parser = subparsers.add_parser("headers", help="Print every header of a message")
    headers_parser.add_argument("path", type=Path, help="Message file")

    attachments_parser = subparsers.add_parser("attachments", help="List a message's attachments")
    attachments_parser.add_argument("path", type=Path, help="Message file")

    save_parser = subparsers.add_parser("save-attachment", help="Write one attachment to a file")
    save_parser.add_argument("path", type=Path, help="Message file")
    save_parser.add_argument("index", type=int, help="Attachment number (1-based)")
    save_parser.add_argument("output", type=Path, help="Destination file")

    mark_parser = subparsers.add_parser("mark", help="Change a message's flags")
    mark_parser.add_argument("path", type=Path, help="Message file")
    mark_parser.add_argument("state", choices=sorted(MARK_ACTIONS), help="New state")

    return parser


def _cmd_list(args: argparse.Namespace, context: MessageContext) -> int:
    try:
        messages = list_messages(args.folder, context=context)
    except InvalidMaildirError as exc:
        logger.error("list_failed", folder=str(args.folder), error=str(exc))
        return 1

    if args.sort_by_date:
        messages = sort_by_date(messages, reverse=args.reverse)

    for message in messages:
        if message.matches_filter(args.filter):
            print(message.format(args.format))
        message.close()

    return 0


def _open(path: Path, context: MessageContext) -> Message | None:
    message = Message(path, context=context)
    if not message.parse():
        logger.error("message_unreadable", path=str(path))
        return None
    return message


def _cmd_show(args: argparse.Namespace, context: MessageContext) -> int:
    message = _open(args.path, context)
    if message is None:
        return 1

    with message:
        message.on_read_message()
        for name in SHOW_HEADERS:
            print(f"{name}: {message.header(name)}")
        print()
        for line in message.body():
            print(line)

        if args.mark_read:
            message.mark_read()

    return 0


def _cmd_headers(args: argparse.Namespace, context: MessageContext) -> int:
    message = _open(args.path, context)
    if message is None:
        return 1

    for name, value in sorted(message.headers().items()):
        print(f"{name}: {value}")
    return 0


def _cmd_attachments(args: argparse.Namespace, context: MessageContext) -> int:
    message = _open(args.path, context)
    if message is None:
        return 1

    with message:
        for index in range(1, len(message.attachments()) + 1):
            attachment = message.get_attachment(index)
            print(f"{index}\t{attachment.size}\t{attachment.content_type}\t{attachment.name}")
    return 0


def _cmd_save_attachment(args: argparse.Namespace, context: MessageContext) -> int:
    message = _open(args.path, context)
    if message is None:
        return 1

    with message:
        if not message.save_attachment(args.index, args.output):
            logger.error("attachment_not_saved", path=str(args.path), index=args.index)
            return 1

    print(f"Saved attachment {args.index} to {args.output}")
    return 0


def _cmd_mark(args: argparse.Namespace, context: MessageContext) -> int:
    message = Message(args.path, context=context)
    changed = MARK_ACTIONS[args.state](message)
    logger.info("message_marked", path=message.path, state=args.state, changed=changed)
    print(message.path)
    return 0


COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "headers": _cmd_headers,
    "attachments": _cmd_attachments,
    "save-attachment": _cmd_save_attachment,
    "mark": _cmd_mark,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Maildir Message CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Logs go to stderr so stdout stays clean for message output.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )

    logger.debug("maildir_message_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    handler = COMMANDS.get(parsed.command)
    if handler is None:
        logger.error("unknown_command", command=parsed.command)
        return 2

    return handler(parsed, MessageContext(settings=settings))


if __name__ == "__main__":
    sys.exit(main())
