"""
Session Models

Auth session issued by the backend and the events emitted when it changes.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class AuthEvent(str, Enum):
    """Session change event kinds."""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class Session(BaseModel):
    """
    Opaque auth session.

    Owned by the auth service; the store only observes it.
    """
    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_at: Optional[int] = Field(None, description="Unix timestamp")
    user_id: str
    email: Optional[str] = None

    def is_expired(self, leeway: int = 30) -> bool:
        """True when the access token is expired or about to be."""
        if self.expires_at is None:
            return False
        return self.expires_at - leeway <= int(time.time())

    @classmethod
    def from_token_response(cls, payload: Dict[str, Any]) -> "Session":
        """Build a session from a token grant or sign-up response."""
        user = payload.get("user") or {}
        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in"):
            expires_at = int(time.time()) + int(payload["expires_in"])
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or "",
            token_type=payload.get("token_type") or "bearer",
            expires_at=expires_at,
            user_id=user.get("id", ""),
            email=user.get("email"),
        )
