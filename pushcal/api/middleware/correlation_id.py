"""Per-request id propagation.

The id is read from the caller's ``X-Request-ID`` (or ``X-Correlation-ID``)
header or minted as a uuid4. It lives in a context variable for the duration
of the request so every log line can be tagged with it, and it is returned to
the caller in ``X-Request-ID``, including on error responses.
"""

import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from aiohttp import web

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"
NO_REQUEST_ID = "no-request-id"

REQUEST_ID_KEY = web.RequestKey("request_id", str)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _incoming_request_id(request: web.Request) -> str:
    for header in (REQUEST_ID_HEADER, CORRELATION_ID_HEADER):
        value = request.headers.get(header, "").strip()
        if value:
            return value
    return str(uuid.uuid4())


@web.middleware
async def correlation_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Bind a request id to the handler's context and echo it back."""
    request_id = _incoming_request_id(request)
    request[REQUEST_ID_KEY] = request_id

    token = request_id_var.set(request_id)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        # aiohttp renders raised HTTP exceptions itself
        exc.headers[REQUEST_ID_HEADER] = request_id
        raise
    finally:
        request_id_var.reset(token)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def get_request_id() -> str:
    """Return the id of the request being handled, or ``"no-request-id"``."""
    return request_id_var.get() or NO_REQUEST_ID
