"""Translate pushcal exceptions into JSON error responses.

Handlers raise ``PushcalError`` subclasses; this middleware is the single
place that turns them into ``{"error": {"id": ..., "message": ...}}``
responses with the error's HTTP status.
"""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from pushcal.exceptions import PushcalError

logger = logging.getLogger(__name__)


def error_response(error: PushcalError) -> web.Response:
    """Build the JSON response for ``error``."""
    return web.json_response(error.to_payload(), status=error.status)


@web.middleware
async def error_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Map raised errors to responses; aiohttp HTTP exceptions pass through."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except PushcalError as exc:
        if exc.status >= 500:
            logger.error(
                "%s %s failed [%s]: %s", request.method, request.path, exc.error_id, exc.message
            )
        else:
            logger.info(
                "%s %s rejected [%s]: %s", request.method, request.path, exc.error_id, exc.message
            )
        return error_response(exc)
    except Exception:
        logger.exception("Unhandled error in %s %s", request.method, request.path)
        return error_response(PushcalError("Unexpected server error."))
