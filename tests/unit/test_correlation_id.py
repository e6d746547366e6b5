"""Unit tests for the request id middleware."""

import warnings

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from pushcal.api.middleware.correlation_id import (
    REQUEST_ID_KEY,
    correlation_id_middleware,
    get_request_id,
)

pytestmark = pytest.mark.unit


class TestCorrelationIdMiddleware:
    @pytest.mark.asyncio
    async def test_middleware_when_header_sent_then_request_key_and_context_set(self) -> None:
        seen = {}

        async def handler(request: web.Request) -> web.Response:
            seen["key"] = request[REQUEST_ID_KEY]
            seen["context"] = get_request_id()
            return web.Response(text="ok")

        request = make_mocked_request("GET", "/health", headers={"X-Request-ID": "req-1"})
        with warnings.catch_warnings():
            warnings.simplefilter("error", web.NotAppKeyWarning)
            response = await correlation_id_middleware(request, handler)

        assert seen == {"key": "req-1", "context": "req-1"}
        assert response.headers["X-Request-ID"] == "req-1"
        assert get_request_id() == "no-request-id"

    @pytest.mark.asyncio
    async def test_middleware_when_http_exception_raised_then_header_attached(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            raise web.HTTPNotFound()

        request = make_mocked_request("GET", "/nope", headers={"X-Correlation-ID": "corr-9"})

        with pytest.raises(web.HTTPNotFound) as excinfo:
            await correlation_id_middleware(request, handler)

        assert excinfo.value.headers["X-Request-ID"] == "corr-9"
