"""Command line client that follows the notification hub and prints changes."""

from __future__ import annotations

import argparse
import asyncio
import logging

from app.client import NotificationClient, NotificationClientError
from app.client.events import (
    ConnectionStateChanged,
    NotificationAdded,
    NotificationChanged,
    NotificationRemoved,
    NotificationsChanged,
)
from app.config import get_client_settings
from app.domain.entities import Notification


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the watcher."""

    parser = argparse.ArgumentParser(
        description="Follow realtime notifications from the notification service.",
    )
    parser.add_argument(
        "--user",
        default=None,
        help="User id to follow (default: every notification)",
    )
    parser.add_argument(
        "--group",
        action="append",
        default=[],
        help="Group to join once connected (may be repeated)",
    )
    parser.add_argument(
        "--send-test",
        action="store_true",
        help="Send a test notification after connecting.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def _describe(notification: Notification) -> str:
    marker = " " if notification.is_read else "*"
    audience = notification.user_id or "all"
    return f"{marker} [{notification.type.value}] {notification.title} ({audience}) {notification.id}"


async def run(args: argparse.Namespace) -> None:
    client = NotificationClient.from_settings(get_client_settings(), user_id=args.user)

    client.events.subscribe(
        ConnectionStateChanged,
        lambda event: print(f"-- connection: {event.state.value}"),
    )
    client.events.subscribe(NotificationAdded, lambda event: print(f"+ {_describe(event.notification)}"))
    client.events.subscribe(NotificationChanged, lambda event: print(f"~ {_describe(event.notification)}"))
    client.events.subscribe(NotificationRemoved, lambda event: print(f"- {event.notification_id}"))
    client.events.subscribe(
        NotificationsChanged,
        lambda event: print(f"~ {len(event.notifications)} notifications, {client.unread_count} unread"),
    )

    async with client:
        await client.initialize(args.user)
        for notification in client.notifications:
            print(_describe(notification))
        print(f"{client.unread_count} unread")

        for group in args.group:
            await client.join_group(group)
        if args.send_test:
            await client.send_test()

        await client.connection.wait_closed()


def main() -> None:
    """Run the watcher until interrupted or the connection gives up."""

    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        asyncio.run(run(args))
    except NotificationClientError as exc:
        raise SystemExit(f"Notification client failed: {exc}") from exc
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
