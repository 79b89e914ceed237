"""
CLI entry point.

Loads configuration, configures logging, and runs one client action.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from .auth import Role, Session
from .categories import Category
from .client import NotificationClient
from .config import ClientConfig, load_config
from .diagnostics import SCENARIOS
from .pipeline import PipelineError
from .realtime import ChannelError
from .view import ConsoleView

CATEGORY_NAMES = {
    "chat": Category.CHAT,
    "consent": Category.CONSENT_REQUEST,
    "oneway": Category.ONE_WAY,
}


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.get_level_from_name(level)
        ),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Notification sync client")
    parser.add_argument(
        "-c", "--config",
        default="notif-sync.yaml",
        help="Path to configuration file (default: notif-sync.yaml)",
    )
    parser.add_argument("--user-id", type=int, help="Act as this user id")
    parser.add_argument("--role", choices=[r.value for r in Role], help="Act with this role")

    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Connect and print pushed notifications")
    watch.add_argument("--tab", choices=CATEGORY_NAMES, default="chat", help="Active tab")

    list_cmd = sub.add_parser("list", help="List notifications of a category")
    list_cmd.add_argument("category", choices=CATEGORY_NAMES)

    send = sub.add_parser("send", help="Send a notification")
    send.add_argument("category", choices=CATEGORY_NAMES)
    send.add_argument("-m", "--message", required=True)
    send.add_argument("-r", "--recipient-id", type=int, required=True)
    send.add_argument("--recipient-type", choices=[r.value for r in Role])
    send.add_argument("--chat-type")
    send.add_argument("--chat-id", type=int)
    send.add_argument("--consent-request-id", type=int)

    delete = sub.add_parser("delete", help="Delete one or all notifications of a category")
    delete.add_argument("category", choices=CATEGORY_NAMES)
    delete.add_argument("--id", type=int, help="Notification id (omit to delete all)")

    diagnose = sub.add_parser("diagnose", help="Trigger a known failure scenario")
    diagnose.add_argument("scenario", choices=SCENARIOS)

    return parser


async def execute(
    args: argparse.Namespace,
    config: ClientConfig,
    session: Session,
    view: ConsoleView,
) -> int:
    """Run a one-shot command. Returns the process exit code."""
    client = NotificationClient(config, view.sinks(), session=session)
    async with client:
        if args.command == "diagnose":
            error = await SCENARIOS[args.scenario](client)
            if error is None:
                print(f"Scenario {args.scenario} was accepted by the service", file=sys.stderr)
                return 1
            print(f"{error.cause.value} status={error.status_code} body={error.body!r}")
            return 0

        category = CATEGORY_NAMES[args.category]
        view.select(category)
        try:
            if args.command == "list":
                await client.store(category).list()
            elif args.command == "send":
                fields = {
                    key: value
                    for key, value in (
                        ("recipient_type", args.recipient_type),
                        ("chat_type", args.chat_type),
                        ("chat_id", args.chat_id),
                        ("consent_request_id", args.consent_request_id),
                    )
                    if value is not None
                }
                print(await client.send(category, args.message, args.recipient_id, **fields))
            elif args.id is not None:
                print(await client.delete(category, args.id))
            else:
                print(await client.delete_all(category))
        except PipelineError:
            return 1
    return 0


def run() -> None:
    """CLI entry point for the client."""
    args = build_parser().parse_args()

    try:
        config = load_config(args.config)
        session = config.session.to_session()
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.user_id is not None or args.role is not None:
        session = Session(
            user_id=args.user_id if args.user_id is not None else session.user_id,
            role=Role(args.role) if args.role else session.role,
        )

    configure_logging(config.logging.level, config.logging.format)
    log = structlog.get_logger()
    log.info("client.config_loaded", config_path=args.config, command=args.command)

    if args.command == "watch":
        view = ConsoleView(active=CATEGORY_NAMES[args.tab])
        client = NotificationClient(config, view.sinks(), session=session)
        try:
            asyncio.run(client.run_forever())
        except ChannelError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass
        return

    sys.exit(asyncio.run(execute(args, config, session, ConsoleView())))


if __name__ == "__main__":
    run()
