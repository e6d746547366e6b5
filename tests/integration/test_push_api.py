"""HTTP tests for the web-push subscription endpoints."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from pushcal.push.relay import PushDeliveryError
from pushcal.storage.document_store import StoreError
from tests.helpers import PushcalTestCase

pytestmark = pytest.mark.integration

SUBSCRIPTION = {
    "endpoint": "https://push.example/abc",
    "keys": {"p256dh": "client-key", "auth": "client-auth"},
    "user_id": 1,
}


class TestSaveSubscription(PushcalTestCase):
    async def test_save_when_endpoint_present_then_success(self) -> None:
        resp = await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)

        assert resp.status == 200
        assert await resp.json() == {"data": {"success": True}}
        assert len(await self.deps.store.subscriptions.find({"user_id": 1})) == 1

    async def test_save_when_endpoint_missing_then_400_and_nothing_stored(self) -> None:
        resp = await self.client.post("/api/save-subscription/", json={"keys": {}})

        assert resp.status == 400
        body = await resp.json()
        assert body["error"]["id"] == "no-endpoint"
        assert body["error"]["message"] == "Subscription must have an endpoint."
        assert await self.deps.store.subscriptions.find({}) == []

    async def test_save_when_store_fails_then_500_unable_to_save(self) -> None:
        with patch.object(
            self.deps.relay.subscriptions, "insert", AsyncMock(side_effect=StoreError("disk full"))
        ):
            resp = await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)

        assert resp.status == 500
        assert (await resp.json())["error"]["id"] == "unable-to-save-subscription"

    async def test_save_when_body_not_json_then_400_invalid_body(self) -> None:
        resp = await self.client.post(
            "/api/save-subscription/", data="{not json", headers={"Content-Type": "application/json"}
        )

        assert resp.status == 400
        assert (await resp.json())["error"]["id"] == "invalid-body"


class TestGetSubscriptions(PushcalTestCase):
    async def test_get_when_subscriptions_exist_then_id_and_endpoint_only(self) -> None:
        await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)
        await self.client.post("/api/save-subscription/", json=dict(SUBSCRIPTION, user_id=2))

        resp = await self.client.post("/api/get-subscriptions/", json={"user_id": 1})

        assert resp.status == 200
        subscriptions = (await resp.json())["data"]["subscriptions"]
        assert len(subscriptions) == 1
        assert set(subscriptions[0]) == {"id", "endpoint"}
        assert subscriptions[0]["endpoint"] == SUBSCRIPTION["endpoint"]

    async def test_get_when_none_registered_then_empty_list(self) -> None:
        resp = await self.client.post("/api/get-subscriptions/", json={"user_id": 5})

        assert await resp.json() == {"data": {"subscriptions": []}}

    async def test_get_when_store_fails_then_500_unable_to_get(self) -> None:
        with patch.object(
            self.deps.relay.subscriptions, "find", AsyncMock(side_effect=StoreError("locked"))
        ):
            resp = await self.client.post("/api/get-subscriptions/", json={"user_id": 1})

        assert resp.status == 500
        assert (await resp.json())["error"]["id"] == "unable-to-get-subscriptions"


class TestTriggerPush(PushcalTestCase):
    async def test_trigger_when_subscribed_then_payload_relayed(self) -> None:
        await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)
        message = {"user_id": 1, "title": "Dinner is ready"}

        resp = await self.client.post("/api/trigger-push-msg/", json=message)

        assert resp.status == 200
        assert await resp.json() == {"data": {"success": True}}
        info, data, ttl = self.sender.calls[0]
        assert info["endpoint"] == SUBSCRIPTION["endpoint"]
        assert json.loads(data) == message
        assert ttl == 60

    async def test_trigger_when_no_subscription_then_404(self) -> None:
        resp = await self.client.post("/api/trigger-push-msg/", json={"user_id": 9})

        assert resp.status == 404
        assert (await resp.json())["error"]["id"] == "no-subscription"

    async def test_trigger_when_endpoint_gone_then_success_and_subscription_deleted(self) -> None:
        await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)
        self.sender.error = PushDeliveryError("Gone", status_code=410)

        resp = await self.client.post("/api/trigger-push-msg/", json={"user_id": 1})

        assert resp.status == 200
        assert await self.deps.store.subscriptions.find({}) == []

    async def test_trigger_when_delivery_fails_then_success_and_subscription_kept(self) -> None:
        await self.client.post("/api/save-subscription/", json=SUBSCRIPTION)
        self.sender.error = PushDeliveryError("Bad gateway", status_code=502)

        resp = await self.client.post("/api/trigger-push-msg/", json={"user_id": 1})

        assert resp.status == 200
        assert len(await self.deps.store.subscriptions.find({})) == 1

    async def test_trigger_when_store_fails_then_500_unable_to_send(self) -> None:
        with patch.object(
            self.deps.relay.subscriptions, "find_one", AsyncMock(side_effect=StoreError("locked"))
        ):
            resp = await self.client.post("/api/trigger-push-msg/", json={"user_id": 1})

        assert resp.status == 500
        error = (await resp.json())["error"]
        assert error["id"] == "unable-to-send-messages"
        assert error["message"].startswith("Unable to send message to subscription : ")


class TestUserIdShape(PushcalTestCase):
    async def test_get_when_user_id_is_array_then_400_invalid_user_id(self) -> None:
        resp = await self.client.post("/api/get-subscriptions/", json={"user_id": [1]})

        assert resp.status == 400
        assert (await resp.json())["error"]["id"] == "invalid-user-id"

    async def test_trigger_when_user_id_is_object_then_400_invalid_user_id(self) -> None:
        resp = await self.client.post("/api/trigger-push-msg/", json={"user_id": {"a": 1}})

        assert resp.status == 400
        assert (await resp.json())["error"]["id"] == "invalid-user-id"
        assert self.sender.calls == []
