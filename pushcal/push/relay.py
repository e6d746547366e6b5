"""Web-push subscription storage and notification relay."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from enum import Enum
from typing import Any, Optional, Protocol

import requests
from pywebpush import WebPushException, webpush

from pushcal.exceptions import NotFound, ValidationError
from pushcal.storage.protocols import DocumentCollection

logger = logging.getLogger(__name__)

PUSH_TTL_SECONDS = 60

# 404 and 410 both mean the push service dropped the endpoint
GONE_STATUS_CODES = frozenset({404, 410})


class PushDeliveryError(Exception):
    """The push service refused or failed a notification."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_gone(self) -> bool:
        return self.status_code in GONE_STATUS_CODES


class DeliveryOutcome(str, Enum):
    """Result of relaying one notification."""

    DELIVERED = "delivered"
    GONE_REMOVED = "gone-removed"
    FAILED = "failed"


class PushSender(Protocol):
    """Protocol for the blocking notification sender."""

    def __call__(self, subscription_info: dict[str, Any], data: str, ttl: int) -> None:
        """Send ``data`` to the subscription; raise PushDeliveryError on failure."""
        ...


class WebPushSender:
    """Send notifications with pywebpush using the configured VAPID identity."""

    def __init__(
        self,
        vapid_private_key: Optional[str],
        vapid_mail_to: Optional[str],
        request_timeout: Optional[float] = None,
    ) -> None:
        self.vapid_private_key = vapid_private_key
        self.vapid_claims = {"sub": vapid_mail_to} if vapid_mail_to else None
        self.request_timeout = request_timeout
        if not vapid_private_key:
            logger.warning("VAPID private key not configured; push delivery will likely be rejected")

    def __call__(self, subscription_info: dict[str, Any], data: str, ttl: int) -> None:
        try:
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=dict(self.vapid_claims) if self.vapid_claims else None,
                ttl=ttl,
                timeout=self.request_timeout,
            )
        except WebPushException as exc:
            status = getattr(exc.response, "status_code", None)
            raise PushDeliveryError(str(exc), status_code=status) from exc
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            # unreachable push service or unusable subscription keys
            raise PushDeliveryError(str(exc)) from exc


def _user_query(user_id: Any) -> dict[str, Any]:
    if isinstance(user_id, (dict, list)):
        raise ValidationError(
            f"user_id must be a string or number, got {type(user_id).__name__}.",
            error_id="invalid-user-id",
        )
    return {"user_id": user_id}


def _subscription_info(subscription: dict[str, Any]) -> dict[str, Any]:
    return {"endpoint": subscription["endpoint"], "keys": subscription.get("keys") or {}}


class SubscriptionRelay:
    """Store push subscriptions and relay notifications to them.

    Args:
        subscriptions: Collection holding subscription documents
        sender: Blocking callable that delivers one notification
        timeout: Seconds allowed per delivery before it counts as failed;
            None waits indefinitely
    """

    def __init__(
        self,
        subscriptions: DocumentCollection,
        sender: PushSender,
        timeout: Optional[float] = 30.0,
    ) -> None:
        self.subscriptions = subscriptions
        self.sender = sender
        self.timeout = timeout

    async def save(self, subscription: Any) -> str:
        """Store a subscription and return its id.

        Raises:
            ValidationError: If the subscription has no endpoint
        """
        if not isinstance(subscription, dict) or not subscription.get("endpoint"):
            raise ValidationError("Subscription must have an endpoint.", error_id="no-endpoint")
        subscription_id = await self.subscriptions.insert(subscription)
        logger.info("Saved push subscription %s", subscription_id)
        return subscription_id

    async def subscriptions_for(self, user_id: Any) -> list[dict[str, Any]]:
        """Return the subscriptions registered for ``user_id``.

        Raises:
            ValidationError: If ``user_id`` is an object or array
        """
        return await self.subscriptions.find(_user_query(user_id))

    async def _deliver(self, subscription: dict[str, Any], data: str) -> None:
        loop = asyncio.get_running_loop()
        call = functools.partial(
            self.sender, _subscription_info(subscription), data, PUSH_TTL_SECONDS
        )
        future = loop.run_in_executor(None, call)
        if self.timeout is None:
            await future
        else:
            await asyncio.wait_for(future, timeout=self.timeout)

    async def trigger(self, user_id: Any, payload: Any) -> DeliveryOutcome:
        """Send ``payload`` as JSON to the subscription registered for ``user_id``.

        A gone subscription is deleted. Any other delivery failure, including
        a timeout, is logged and reported as ``DeliveryOutcome.FAILED``.

        Raises:
            ValidationError: If ``user_id`` is an object or array
            NotFound: If no subscription exists for the user
        """
        subscription = await self.subscriptions.find_one(_user_query(user_id))
        if subscription is None:
            raise NotFound(
                f"No subscription registered for user {user_id!r}.", error_id="no-subscription"
            )

        data = json.dumps(payload)
        try:
            await self._deliver(subscription, data)
        except PushDeliveryError as exc:
            if exc.is_gone:
                await self.subscriptions.remove({"id": subscription["id"]})
                logger.info(
                    "Removed gone subscription %s (status %s)", subscription["id"], exc.status_code
                )
                return DeliveryOutcome.GONE_REMOVED
            logger.warning("Push delivery to %s failed: %s", subscription["id"], exc)
            return DeliveryOutcome.FAILED
        except asyncio.TimeoutError:
            logger.warning(
                "Push delivery to %s timed out after %.1fs", subscription["id"], self.timeout
            )
            return DeliveryOutcome.FAILED

        logger.debug("Delivered push message to %s", subscription["id"])
        return DeliveryOutcome.DELIVERED
