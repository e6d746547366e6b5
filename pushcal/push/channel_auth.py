"""Pusher channel authentication for presence and private channels."""

from __future__ import annotations

import logging
from typing import Any, Optional

import pusher

from pushcal.exceptions import UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

INVALID_CHANNEL_AUTH = "invalid-channel-auth"


class ChannelAuthenticator:
    """Sign Pusher channel subscription requests.

    Signing is a local HMAC computation in the Pusher SDK; no network call
    is made here.
    """

    def __init__(self, client: Optional[Any]) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Any) -> ChannelAuthenticator:
        """Create an authenticator from ``Config``; unconfigured Pusher yields a disabled one."""
        if not (config.pusher_app_id and config.pusher_key and config.pusher_secret):
            logger.warning("Pusher credentials not configured; channel auth disabled")
            return cls(None)
        client = pusher.Pusher(
            app_id=str(config.pusher_app_id),
            key=config.pusher_key,
            secret=config.pusher_secret,
            cluster=config.pusher_cluster,
            ssl=True,
        )
        return cls(client)

    def _sign(
        self, socket_id: Any, channel_name: Any, custom_data: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        if self._client is None:
            raise UpstreamFailure(
                "Pusher credentials are not configured.", error_id="pusher-not-configured"
            )
        if not socket_id or not channel_name:
            raise ValidationError(
                "Channel auth requires socket_id and channel_name.",
                error_id=INVALID_CHANNEL_AUTH,
            )
        try:
            return self._client.authenticate(
                channel=channel_name, socket_id=socket_id, custom_data=custom_data
            )
        except (ValueError, TypeError) as exc:
            logger.info("Rejected channel auth for %r: %s", channel_name, exc)
            raise ValidationError(str(exc), error_id=INVALID_CHANNEL_AUTH) from exc

    def authenticate_presence(
        self, socket_id: Any, channel_name: Any, user_id: Any
    ) -> dict[str, Any]:
        """Sign a presence channel subscription for ``user_id``."""
        if user_id is None or user_id == "":
            raise ValidationError(
                "Presence channel auth requires an id.", error_id=INVALID_CHANNEL_AUTH
            )
        auth = self._sign(socket_id, channel_name, {"user_id": user_id})
        logger.debug("Signed presence channel %s for user %s", channel_name, user_id)
        return auth

    def authenticate_private(self, socket_id: Any, channel_name: Any) -> dict[str, Any]:
        """Sign a private channel subscription."""
        return self._sign(socket_id, channel_name)
