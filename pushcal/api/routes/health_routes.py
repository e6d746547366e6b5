"""Liveness endpoint."""

from __future__ import annotations

from aiohttp import web

from pushcal import __version__


def register_health_routes(app: web.Application) -> None:
    async def health_check(_request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "version": __version__})

    app.router.add_get("/health", health_check)
