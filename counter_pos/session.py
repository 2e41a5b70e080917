"""Signed-in staff session, established once and passed to whoever needs it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import jwt

from counter_pos.data import user_from_api
from counter_pos.errors import AuthError
from counter_pos.models import StaffUser


@dataclass(frozen=True)
class SessionContext:
    token: str
    user: StaffUser
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"


def _decode_claims(token: str) -> dict[str, Any]:
    try:
        # The backend verifies the signature; the client only reads identity and expiry.
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise AuthError(f"Invalid session token: {exc}") from exc


def establish_session(
    token: str, user_payload: dict[str, Any] | None = None, now: datetime | None = None
) -> SessionContext:
    """Build a session from an access token, rejecting it if already expired.

    Identity comes from the login response when given, otherwise from the
    token claims.
    """
    if not token:
        raise AuthError("Missing session token")
    claims = _decode_claims(token)

    expires_at = None
    if claims.get("exp") is not None:
        try:
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise AuthError("Session token has an invalid expiry") from exc

    user = user_from_api(user_payload if user_payload else claims)
    session = SessionContext(token=token, user=user, expires_at=expires_at)
    if session.is_expired(now):
        raise AuthError("Session token has expired")
    return session
