"""Authentication schemas for Supabase JWT tokens.

``UserSession`` is the explicit per-request identity handed to every
service call, carrying both the owner id used for row scoping and the
bearer token forwarded to the remote analysis function.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr


class UserSession(BaseModel):
    """Authenticated caller, built from a verified access token."""

    user_id: UUID = Field(..., description="Supabase user ID")
    email: Optional[EmailStr] = Field(None, description="User email")
    role: str = Field(default="authenticated", description="User role")
    access_token: str = Field(..., description="Bearer token the session was built from", repr=False)

    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")

    @property
    def is_admin(self) -> bool:
        if self.role == "admin":
            return True
        return (self.app_metadata or {}).get("role") == "admin"


class AuthError(BaseModel):
    """Authentication error response."""

    error: str = Field(..., description="Error type")
    error_description: str = Field(..., description="Error description")


__all__ = ["UserSession", "AuthError"]
