"""
Session Identity

Resolves the current user from the request. The username is taken from the
X-User-Id header, or from the ``user`` cookie set by the login endpoint.
"""

import json
from dataclasses import dataclass
from typing import Optional

from fastapi import Cookie, Header, HTTPException, status

SESSION_COOKIE = "user"
SESSION_MAX_AGE = 60 * 60 * 24  # 1 day


@dataclass
class SessionUser:
    """Represents the user a request acts on behalf of."""

    uid: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_cookie(cls, raw: str) -> Optional["SessionUser"]:
        """Parse the session cookie. Returns None for malformed cookies."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict) or not data.get("username"):
            return None
        return cls(
            uid=str(data["username"]),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )


def _resolve_user(x_user_id: Optional[str], session: Optional[str]) -> Optional[SessionUser]:
    if x_user_id and x_user_id.strip():
        return SessionUser(uid=x_user_id.strip())
    if session:
        return SessionUser.from_cookie(session)
    return None


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    session: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
) -> SessionUser:
    """
    Dependency that returns the current user or rejects the request.

    Usage:
        @router.get("/protected")
        def protected_route(user: SessionUser = Depends(get_current_user)):
            return {"user_id": user.uid}
    """
    user = _resolve_user(x_user_id, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user

