"""Web-push subscription routes for pushcal."""

from __future__ import annotations

import logging

from aiohttp import web

from pushcal.api.request_body import read_body
from pushcal.core.dependencies import AppDependencies
from pushcal.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

SUCCESS = {"data": {"success": True}}


def register_push_routes(app: web.Application, deps: AppDependencies) -> None:
    """Register subscription storage and push relay routes.

    Args:
        app: aiohttp web application
        deps: Application dependencies
    """
    relay = deps.relay

    async def save_subscription(request: web.Request) -> web.Response:
        """Store the posted PushSubscription."""
        body = await read_body(request)
        try:
            await relay.save(body)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "The subscription was received but we were unable to save it to our database.",
                error_id="unable-to-save-subscription",
            ) from exc
        return web.json_response(SUCCESS)

    async def get_subscriptions(request: web.Request) -> web.Response:
        """List id and endpoint of the subscriptions registered for a user."""
        # TODO: restrict to authenticated operators once an admin login exists
        body = await read_body(request)
        try:
            subscriptions = await relay.subscriptions_for(body.get("user_id"))
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "We were unable to get the subscriptions from our database.",
                error_id="unable-to-get-subscriptions",
            ) from exc

        reduced = [{"id": sub["id"], "endpoint": sub.get("endpoint")} for sub in subscriptions]
        return web.json_response({"data": {"subscriptions": reduced}})

    async def trigger_push_msg(request: web.Request) -> web.Response:
        """Relay the posted payload to the user's subscription."""
        body = await read_body(request)
        logger.debug("Push message requested for user %s", body.get("user_id"))
        try:
            outcome = await relay.trigger(body.get("user_id"), body)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                f"Unable to send message to subscription : '{exc.message}'",
                error_id="unable-to-send-messages",
            ) from exc

        logger.info("Push message for user %s: %s", body.get("user_id"), outcome.value)
        return web.json_response(SUCCESS)

    app.router.add_post("/api/save-subscription/", save_subscription)
    app.router.add_post("/api/get-subscriptions/", get_subscriptions)
    app.router.add_post("/api/trigger-push-msg/", trigger_push_msg)
