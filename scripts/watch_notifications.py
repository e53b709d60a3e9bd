#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
from typing import Optional

from loguru import logger

from notification_sync.core.config import Settings, settings
from notification_sync.core.logging import configure_logging
from notification_sync.schemas.notification import Notification, NotificationFilter
from notification_sync.services.presentation import (
    badge_label,
    connection_label,
    format_relative_time,
    icon_for_type,
)
from notification_sync.services.session import NotificationSession
from notification_sync.services.sync_client import NotificationSyncClient


def _format_notification(notification: Notification) -> str:
    marker = ' ' if notification.is_read else '*'
    return (
        f"{marker} [{icon_for_type(notification.type)}] #{notification.id} {notification.title}: "
        f"{notification.message} ({format_relative_time(notification.created_at)})"
    )


def _summary(client: NotificationSyncClient) -> str:
    badge = badge_label(client.unread_count) or '0'
    return f"unread={badge} connection={connection_label(client.connection_state)}"


def _build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.api_url:
        overrides['API_BASE_URL'] = args.api_url
    if args.token:
        overrides['ACCESS_TOKEN'] = args.token
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


async def _watch(config: Settings, filters: NotificationFilter, send_test: bool, duration: Optional[float]) -> int:
    async with NotificationSession(config=config) as session:
        client = await session.set_authenticated(True)
        if client is None:
            print("No usable access token found; log in first or pass --token")
            return 1
        if client.error:
            print(f"error: {client.error}")
        if filters.to_query():
            await client.load(filters)

        for notification in client.notifications:
            print(_format_notification(notification))
        print(_summary(client))

        client.on_new_notification(lambda item: print(_format_notification(item)))
        client.subscribe(lambda current: logger.debug(_summary(current)))

        if send_test:
            sent = await client.send_test_notification(title='Test', message='Test notification')
            print('test notification sent' if sent else f"test notification failed: {client.error}")

        try:
            if duration:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()
        finally:
            client.off_new_notification()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description='Print notifications and follow the realtime channel.')
    parser.add_argument('--api-url', default=None, help='Override API_BASE_URL')
    parser.add_argument('--token', default=None, help='Bearer token; defaults to the stored one')
    parser.add_argument('--unread-only', action='store_true')
    parser.add_argument('--type', default=None, help='Only notifications of this type')
    parser.add_argument('--limit', type=int, default=None)
    parser.add_argument('--send-test', action='store_true', help='Ask the service for a test notification')
    parser.add_argument('--duration', type=float, default=None, help='Stop after this many seconds')
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    filters = NotificationFilter(unread_only=args.unread_only, type=args.type, limit=args.limit)
    try:
        return asyncio.run(_watch(_build_settings(args), filters, args.send_test, args.duration))
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    raise SystemExit(main())
