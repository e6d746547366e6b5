"""Calendar item CRUD and iCalendar subscription routes."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web
from pydantic import ValidationError as PydanticValidationError

from pushcal.api.request_body import read_body
from pushcal.calendar.models import CalendarItem
from pushcal.core.dependencies import AppDependencies
from pushcal.exceptions import NotFound, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

SUCCESS = {"data": {"success": True}}


def _validate_item(data: Any) -> CalendarItem:
    if not isinstance(data, dict):
        raise ValidationError("Calendar item must be an object.", error_id="invalid-calendar-item")
    try:
        return CalendarItem.model_validate(data)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ValidationError(
            f"Calendar item has missing or invalid fields: {fields}",
            error_id="invalid-calendar-item",
        ) from exc


def _require_id(body: dict[str, Any]) -> str:
    item_id = body.get("id")
    if item_id is None or str(item_id).strip() == "":
        raise ValidationError("Request must include the calendar item id.", error_id="no-id")
    return str(item_id)


def register_calendar_routes(app: web.Application, deps: AppDependencies) -> None:
    """Register calendar item routes and the iCalendar feed.

    Args:
        app: aiohttp web application
        deps: Application dependencies
    """
    service = deps.calendar_service
    token_verifier = deps.token_verifier

    async def add_calendar_item(request: web.Request) -> web.Response:
        item = _validate_item(await read_body(request))
        try:
            item_id = await service.add(item)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "The calendar item was received but we were unable to save it to our database.",
                error_id="unable-to-save-calendar-item",
            ) from exc
        return web.json_response({"data": {"success": True, "id": item_id}})

    async def get_calendar_items(request: web.Request) -> web.Response:
        """List the items a user created (filtered by ``added_by``)."""
        raw_user_id = request.query.get("user_id", "")
        try:
            user_id = int(raw_user_id)
        except ValueError as exc:
            raise ValidationError(
                f"user_id must be numeric, got {raw_user_id!r}.", error_id="invalid-user-id"
            ) from exc

        try:
            items = await service.list_added_by(user_id)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "We were unable to get the calendar items from our database.",
                error_id="unable-to-get-calendar-items",
            ) from exc
        return web.json_response({"data": {"items": [item.to_api() for item in items]}})

    async def update_calendar_item(request: web.Request) -> web.Response:
        """Replace all fields of an existing item."""
        body = await read_body(request)
        item_id = _require_id(body)
        item = _validate_item(body.get("item"))
        try:
            updated = await service.update(item_id, item)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "We were unable to update the calendar item in our database.",
                error_id="unable-to-update-calendar-item",
            ) from exc
        if not updated:
            raise NotFound(f"No calendar item with id {item_id!r}.", error_id="calendar-item-not-found")
        return web.json_response(SUCCESS)

    async def delete_calendar_item(request: web.Request) -> web.Response:
        body = await read_body(request)
        item_id = _require_id(body)
        try:
            removed = await service.delete(item_id)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "We were unable to delete the calendar item from our database.",
                error_id="unable-to-delete-calendar-item",
            ) from exc
        if not removed:
            logger.info("Delete requested for unknown calendar item %s", item_id)
        return web.json_response(SUCCESS)

    async def subscribe(request: web.Request) -> web.Response:
        """Serve the iCalendar feed of the token's subject."""
        user_id = token_verifier.verify(request.query.get("token"))
        try:
            feed = await service.build_feed_for(user_id)
        except UpstreamFailure as exc:
            raise UpstreamFailure(
                "We were unable to build the calendar.", error_id="unable-to-build-calendar"
            ) from exc
        except Exception as exc:
            logger.exception("Calendar feed serialization failed for user %s", user_id)
            raise UpstreamFailure(
                "We were unable to build the calendar.", error_id="unable-to-build-calendar"
            ) from exc
        return web.Response(
            text=feed,
            content_type="text/calendar",
            charset="utf-8",
            headers={"Content-Disposition": 'inline; filename="calendar.ics"'},
        )

    app.router.add_post("/ical/add-calendar-item", add_calendar_item)
    app.router.add_get("/ical/get-calendar-items", get_calendar_items)
    app.router.add_post("/ical/update-calendar-item", update_calendar_item)
    app.router.add_post("/ical/delete-calendar-item", delete_calendar_item)
    app.router.add_get("/ical/subscribe", subscribe)
