"""pushcal.api.server: aiohttp application and server lifecycle.

Builds the web application from an ``AppDependencies`` container and runs it
until SIGINT/SIGTERM:

- /api/*    web-push subscription storage and relay
- /pusher/* Pusher channel authentication
- /ical/*   calendar items and the iCalendar subscription feed
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from typing import Optional

from aiohttp import web

from pushcal.api.middleware import correlation_id_middleware, error_middleware
from pushcal.api.routes import (
    register_calendar_routes,
    register_health_routes,
    register_push_routes,
    register_pusher_routes,
)
from pushcal.core.app_logging import configure_logging
from pushcal.core.config import Config
from pushcal.core.dependencies import AppDependencies, DependencyContainer

logger = logging.getLogger(__name__)

DEPENDENCIES_KEY = web.AppKey("dependencies", AppDependencies)

# Subscription payloads and calendar items are small
CLIENT_MAX_SIZE = 1024 * 1024


def make_app(deps: AppDependencies) -> web.Application:
    """Create aiohttp web application with all routes wired to ``deps``."""
    app = web.Application(
        middlewares=[correlation_id_middleware, error_middleware],
        client_max_size=CLIENT_MAX_SIZE,
    )
    app[DEPENDENCIES_KEY] = deps

    register_health_routes(app)
    register_push_routes(app, deps)
    register_pusher_routes(app, deps)
    register_calendar_routes(app, deps)

    async def _shutdown(_app: web.Application) -> None:
        logger.info("Application shutdown requested")

    app.on_shutdown.append(_shutdown)
    return app


async def _serve(
    config: Config,
    deps: Optional[AppDependencies] = None,
    external_stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration
        deps: Prebuilt dependencies; built from ``config`` when omitted
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers are not registered (caller owns signal handling).
    """
    deps = deps or DependencyContainer.build_dependencies(config)
    stop_event = external_stop_event or asyncio.Event()

    logger.debug(
        "Creating web application. Config: %s",
        ", ".join(
            f"{k}={'<redacted>' if 'secret' in k or 'private' in k else v!r}"
            for k, v in vars(config).items()
        ),
    )
    app = make_app(deps)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host=config.server_bind, port=config.server_port)
    try:
        await site.start()
    except OSError:
        logger.exception("Failed to start server on %s:%d", config.server_bind, config.server_port)
        await runner.cleanup()
        raise

    logger.info(
        "Running on http://%s:%d (pid %d)", config.server_bind, config.server_port, os.getpid()
    )

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)
    else:
        logger.debug("Using external stop event - skipping signal handler registration")

    await stop_event.wait()
    logger.info("Stop event received, shutting down")
    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: Config) -> None:
    """Configure logging and block running the server.

    Args:
        config: Effective configuration (see ``pushcal.core.config.Config``)
    """
    configure_logging(debug_mode=config.debug_logging, level_name=config.log_level)

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception:
        logger.exception("Server terminated unexpectedly")
        raise
