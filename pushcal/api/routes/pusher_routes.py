"""Pusher channel authentication routes."""

from __future__ import annotations

from aiohttp import web

from pushcal.api.request_body import read_body
from pushcal.core.dependencies import AppDependencies


def register_pusher_routes(app: web.Application, deps: AppDependencies) -> None:
    """Register presence and private channel auth endpoints."""
    channel_auth = deps.channel_auth

    async def auth_presence(request: web.Request) -> web.Response:
        body = await read_body(request)
        auth = channel_auth.authenticate_presence(
            body.get("socket_id"), body.get("channel_name"), body.get("id")
        )
        return web.json_response(auth)

    async def auth_private(request: web.Request) -> web.Response:
        body = await read_body(request)
        auth = channel_auth.authenticate_private(body.get("socket_id"), body.get("channel_name"))
        return web.json_response(auth)

    app.router.add_post("/pusher/auth/presence", auth_presence)
    app.router.add_post("/pusher/auth/private", auth_private)
