"""Request body decoding shared by the route modules.

Browsers post JSON to the push and calendar endpoints, while pusher-js posts
``application/x-www-form-urlencoded`` to the channel auth endpoints.
"""

from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from pushcal.exceptions import ValidationError

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_body(request: web.Request) -> dict[str, Any]:
    """Return the request body as a mapping.

    JSON bodies must decode to an object; form bodies are flattened to their
    last value per key. An empty body yields an empty mapping.

    Raises:
        ValidationError: If the body cannot be decoded
    """
    if not request.body_exists:
        return {}

    if request.content_type in FORM_TYPES:
        form = await request.post()
        return {key: value for key, value in form.items()}

    text = await request.text()
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Request body is not valid JSON: {exc.msg}", error_id="invalid-body") from exc
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.", error_id="invalid-body")
    return data
