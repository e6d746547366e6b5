"""Signed calendar subscription tokens.

Calendar clients subscribe to ``/ical/subscribe?token=...``. The token is an
HS256 JWT whose subject is the id of the calendar owner.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import jwt

from pushcal.exceptions import AuthTokenInvalid

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

SubjectId = Union[int, str]


def normalize_subject(value: Any) -> SubjectId:
    """Return numeric subject ids as ``int`` and everything else as ``str``."""
    if isinstance(value, bool):
        raise AuthTokenInvalid("Token subject is not an id.")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    if not text:
        raise AuthTokenInvalid("Token subject is empty.")
    return text


class CalendarTokenVerifier:
    """Issue and verify calendar subscription tokens."""

    def __init__(self, secret: Optional[str]) -> None:
        self._secret = secret

    def _require_secret(self) -> str:
        if not self._secret:
            raise AuthTokenInvalid("Calendar token secret is not configured.")
        return self._secret

    def issue(self, subject_id: SubjectId, expires_in: Optional[int] = None) -> str:
        """Mint a token for ``subject_id``.

        Args:
            subject_id: Calendar owner id
            expires_in: Optional lifetime in seconds; tokens never expire otherwise
        """
        claims: dict[str, Any] = {
            "sub": str(subject_id),
            "iat": datetime.now(timezone.utc),
        }
        if expires_in is not None:
            claims["exp"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return jwt.encode(claims, self._require_secret(), algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> SubjectId:
        """Verify ``token`` and return the subject id it was issued for.

        The subject is read from ``sub``; tokens minted by older clients carry
        it in ``id`` instead.

        Raises:
            AuthTokenInvalid: If the token is missing, badly signed or expired
        """
        if not token:
            raise AuthTokenInvalid("Missing calendar token.")
        secret = self._require_secret()
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"verify_sub": False},
            )
        except jwt.PyJWTError as exc:
            logger.info("Rejected calendar token: %s", exc)
            raise AuthTokenInvalid(f"Invalid calendar token: {exc}") from exc

        subject = claims.get("sub", claims.get("id"))
        if subject is None:
            raise AuthTokenInvalid("Calendar token has no subject.")
        return normalize_subject(subject)
