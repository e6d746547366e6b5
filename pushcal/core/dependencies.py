"""Dependency injection container for the pushcal server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pushcal.auth.tokens import CalendarTokenVerifier
from pushcal.calendar.feed_builder import CalendarFeedBuilder
from pushcal.calendar.service import CalendarItemService
from pushcal.core.config import Config
from pushcal.push.channel_auth import ChannelAuthenticator
from pushcal.push.relay import PushSender, SubscriptionRelay, WebPushSender
from pushcal.storage.document_store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class AppDependencies:
    """Container for the shared objects route handlers need.

    Handlers receive this container instead of reaching for module-level
    globals, so tests can build an app around a temporary database and fake
    SDK clients.
    """

    config: Config
    store: DocumentStore
    relay: SubscriptionRelay
    channel_auth: ChannelAuthenticator
    token_verifier: CalendarTokenVerifier
    calendar_service: CalendarItemService


class DependencyContainer:
    """Factory for building application dependencies."""

    @staticmethod
    def build_dependencies(
        config: Config,
        store: Optional[DocumentStore] = None,
        push_sender: Optional[PushSender] = None,
        channel_auth: Optional[ChannelAuthenticator] = None,
    ) -> AppDependencies:
        """Build all application dependencies from ``config``.

        Args:
            config: Effective configuration
            store: Document store to use instead of one at ``config.database_path``
            push_sender: Notification sender to use instead of pywebpush
            channel_auth: Channel authenticator to use instead of the Pusher SDK
        """
        store = store or DocumentStore(config.database_path)

        sender = push_sender or WebPushSender(
            vapid_private_key=config.vapid_private_key,
            vapid_mail_to=config.vapid_mail_to,
            request_timeout=config.push_timeout_seconds,
        )
        relay = SubscriptionRelay(
            store.subscriptions, sender, timeout=config.push_timeout_seconds
        )

        feed_builder = CalendarFeedBuilder(
            calendar_name=config.calendar_name, offset_mode=config.offset_mode
        )

        deps = AppDependencies(
            config=config,
            store=store,
            relay=relay,
            channel_auth=channel_auth or ChannelAuthenticator.from_config(config),
            token_verifier=CalendarTokenVerifier(config.calendar_token_secret),
            calendar_service=CalendarItemService(store.calendar_items, feed_builder),
        )
        logger.debug(
            "Dependencies built: database=%s offset_mode=%s push_timeout=%s",
            store.database_path,
            config.offset_mode.value,
            config.push_timeout_seconds,
        )
        return deps
