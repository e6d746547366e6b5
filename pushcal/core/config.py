"""Configuration for the pushcal server.

Values come from environment variables. A ``.env`` file in the working
directory is read first and fills in variables that are not already set.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pushcal.calendar.models import OffsetMode

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9012


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from a dotenv file.

    Blank lines, ``#`` comments and lines without ``=`` are ignored. A leading
    ``export`` is allowed and matching surrounding quotes are removed. A
    missing or unreadable file yields an empty mapping.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        logger.warning("Cannot read %s; ignoring it", path, exc_info=True)
        return {}

    pairs: dict[str, str] = {}
    for line in (raw.strip() for raw in content.splitlines()):
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, _, value = line.partition("=")
        name = name.strip()
        if name.startswith("export "):
            name = name[len("export "):].strip()
        if name:
            pairs[name] = _unquote(value.strip())
    return pairs


@dataclass
class Config:
    """Typed configuration for pushcal.

    Fields:
        vapid_public_key / vapid_private_key: VAPID key pair for web push
        vapid_mail_to: contact address sent as the VAPID ``sub`` claim
        pusher_app_id / pusher_key / pusher_secret / pusher_cluster: Pusher app credentials
        calendar_token_secret: HS256 secret for calendar subscription tokens
        offset_mode: how ``+offset`` suffixes of stored timestamps are read
        calendar_name: X-WR-CALNAME of the generated feed
        push_timeout_seconds: seconds allowed for one push delivery (None disables it)
        database_path: SQLite file holding subscriptions and calendar items
        server_bind / server_port: HTTP listen address
        log_level / debug_logging: logging overrides
    """

    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_mail_to: Optional[str] = None
    pusher_app_id: Optional[str] = None
    pusher_key: Optional[str] = None
    pusher_secret: Optional[str] = None
    pusher_cluster: str = "eu"
    calendar_token_secret: Optional[str] = None
    offset_mode: OffsetMode = OffsetMode.LEGACY
    calendar_name: str = "pushcal"
    push_timeout_seconds: Optional[float] = 30.0
    database_path: str = "pushcal.db"
    server_bind: str = "0.0.0.0"  # nosec: B104 - intentional default; override with PUSHCAL_HOST
    server_port: int = DEFAULT_PORT
    log_level: str = "INFO"
    debug_logging: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced; invalid ones fall back to their
        defaults with a warning.
        """
        if data is None:
            data = {}

        def _optional_str(key: str) -> Optional[str]:
            raw = data.get(key)
            if raw is None or str(raw).strip() == "":
                return None
            return str(raw).strip()

        port_raw = data.get("server_port", DEFAULT_PORT)
        try:
            server_port = int(port_raw)
        except (TypeError, ValueError):
            logger.warning("Config server_port=%r is not an int; using default %d", port_raw, DEFAULT_PORT)
            server_port = DEFAULT_PORT

        timeout_raw = data.get("push_timeout_seconds", 30.0)
        push_timeout: Optional[float]
        if timeout_raw is None or str(timeout_raw).strip().lower() in ("", "none", "0"):
            push_timeout = None
        else:
            try:
                push_timeout = float(timeout_raw)
            except (TypeError, ValueError):
                logger.warning("Config push_timeout_seconds=%r is not a number; using 30", timeout_raw)
                push_timeout = 30.0
            if push_timeout is not None and push_timeout < 0:
                logger.warning("push_timeout_seconds %.1f is negative; disabling timeout", push_timeout)
                push_timeout = None

        mode_raw = str(data.get("offset_mode") or OffsetMode.LEGACY.value).strip().lower()
        try:
            offset_mode = OffsetMode(mode_raw)
        except ValueError:
            logger.warning("Unknown offset_mode %r; using legacy", mode_raw)
            offset_mode = OffsetMode.LEGACY

        vapid_mail_to = _optional_str("vapid_mail_to")
        if vapid_mail_to and not vapid_mail_to.startswith(("mailto:", "https:")):
            vapid_mail_to = f"mailto:{vapid_mail_to}"

        debug_raw = data.get("debug_logging", False)
        debug_logging = (
            debug_raw if isinstance(debug_raw, bool)
            else str(debug_raw).strip().lower() in ("1", "true", "yes", "on")
        )

        return cls(
            vapid_public_key=_optional_str("vapid_public_key"),
            vapid_private_key=_optional_str("vapid_private_key"),
            vapid_mail_to=vapid_mail_to,
            pusher_app_id=_optional_str("pusher_app_id"),
            pusher_key=_optional_str("pusher_key"),
            pusher_secret=_optional_str("pusher_secret"),
            pusher_cluster=_optional_str("pusher_cluster") or "eu",
            calendar_token_secret=_optional_str("calendar_token_secret"),
            offset_mode=offset_mode,
            calendar_name=_optional_str("calendar_name") or "pushcal",
            push_timeout_seconds=push_timeout,
            database_path=_optional_str("database_path") or "pushcal.db",
            server_bind=_optional_str("server_bind") or "0.0.0.0",  # nosec: B104
            server_port=server_port,
            log_level=(_optional_str("log_level") or "INFO").upper(),
            debug_logging=debug_logging,
        )


# environment variable -> Config field
ENV_KEYS: dict[str, str] = {
    "VAPID_PUBLIC_KEY": "vapid_public_key",
    "VAPID_PRIVATE_KEY": "vapid_private_key",
    "VAPID_MAIL_TO": "vapid_mail_to",
    "PUSHER_APP_ID": "pusher_app_id",
    "PUSHER_PUBLIC_KEY": "pusher_key",
    "PUSHER_SECRET_KEY": "pusher_secret",
    "PUSHER_CLUSTER": "pusher_cluster",
    "CALENDAR_TOKEN_SECRET": "calendar_token_secret",
    "CALENDAR_OFFSET_MODE": "offset_mode",
    "CALENDAR_NAME": "calendar_name",
    "PUSH_TIMEOUT_SECONDS": "push_timeout_seconds",
    "PUSHCAL_DATABASE": "database_path",
    "PUSHCAL_HOST": "server_bind",
    "PORT": "server_port",
    "PUSHCAL_LOG_LEVEL": "log_level",
    "PUSHCAL_DEBUG": "debug_logging",
}


class ConfigManager:
    """Resolve the pushcal ``Config`` from the process environment.

    Args:
        env_file_path: dotenv file providing defaults; ``./.env`` when omitted
    """

    def __init__(self, env_file_path: Optional[Path] = None):
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Export dotenv values for variables the environment does not define.

        Returns:
            Names of the variables that were exported
        """
        defaults = parse_env_file(self.env_file_path)
        if not defaults:
            logger.debug("No dotenv defaults at %s", self.env_file_path)
            return []

        exported = [name for name in defaults if name not in os.environ]
        for name in exported:
            os.environ[name] = defaults[name]

        if exported:
            logger.debug("Exported dotenv defaults: %s", ", ".join(exported))
        return exported

    def build_config_from_env(self) -> dict[str, Any]:
        """Map the non-empty pushcal variables in the environment to Config fields."""
        return {
            field: os.environ[env_key]
            for env_key, field in ENV_KEYS.items()
            if os.environ.get(env_key)
        }

    def load(self) -> Config:
        """Load ``.env`` defaults and return the effective Config."""
        self.load_env_file()
        return Config.from_dict(self.build_config_from_env())
