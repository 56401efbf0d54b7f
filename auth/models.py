"""
Pydantic models shared by the stores, the auth service and the routes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SanitizedUser(BaseModel):
    """A user record as seen outside the store boundary (no password hash)."""

    id: int
    username: str
    created_at: datetime


class UserRecord(SanitizedUser):
    """Full stored record. Never returned by the auth service."""

    password_hash: str = Field(repr=False)

    def sanitized(self) -> SanitizedUser:
        return SanitizedUser(id=self.id, username=self.username, created_at=self.created_at)


class TokenPayload(BaseModel):
    """Claims embedded in an access token."""

    sub: str
    username: str

    def to_claims(self) -> Dict[str, Any]:
        return self.model_dump()


class LoginResult(BaseModel):
    user: SanitizedUser
    payload: TokenPayload
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class HealthProbe(BaseModel):
    can_read: bool = False
    can_write: bool = False
    response_time_ms: float = 0.0
    error: Optional[str] = None
