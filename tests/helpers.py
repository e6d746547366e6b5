"""Shared builders for pushcal tests."""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Any, Optional

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from pushcal.api.server import make_app
from pushcal.core.config import Config
from pushcal.core.dependencies import AppDependencies, DependencyContainer

TEST_TOKEN_SECRET = "test-calendar-secret-0123456789abcdef"
TEST_PUSHER_KEY = "test-key"
TEST_PUSHER_SECRET = "test-secret"


class FakePushSender:
    """Records notifications instead of sending them."""

    def __init__(self, error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.error = error
        self.delay = delay
        self.calls: list[tuple[dict[str, Any], str, int]] = []

    def __call__(self, subscription_info: dict[str, Any], data: str, ttl: int) -> None:
        self.calls.append((subscription_info, data, ttl))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error


def make_test_config(tmp_dir: Path, **overrides: Any) -> Config:
    data: dict[str, Any] = {
        "database_path": str(Path(tmp_dir) / "pushcal-test.db"),
        "calendar_token_secret": TEST_TOKEN_SECRET,
        "pusher_app_id": "123456",
        "pusher_key": TEST_PUSHER_KEY,
        "pusher_secret": TEST_PUSHER_SECRET,
        "push_timeout_seconds": 5,
        "calendar_name": "Test Calendar",
    }
    data.update(overrides)
    return Config.from_dict(data)


def build_test_dependencies(
    tmp_dir: Path, sender: Optional[FakePushSender] = None, **overrides: Any
) -> AppDependencies:
    config = make_test_config(tmp_dir, **overrides)
    return DependencyContainer.build_dependencies(config, push_sender=sender or FakePushSender())


class PushcalTestCase(AioHTTPTestCase):
    """AioHTTPTestCase serving a pushcal app backed by a temporary database."""

    config_overrides: dict[str, Any] = {}

    async def get_application(self) -> web.Application:
        self._tmp = tempfile.TemporaryDirectory()
        self.sender = FakePushSender()
        self.deps = build_test_dependencies(
            Path(self._tmp.name), sender=self.sender, **self.config_overrides
        )
        return make_app(self.deps)

    async def asyncTearDown(self) -> None:
        await super().asyncTearDown()
        self._tmp.cleanup()
