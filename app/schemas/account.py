"""Request/response schemas and cached projections for member accounts."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

AccountStatus = Literal["active", "banned"]
AccountRole = Literal["user", "admin"]
RejectionKind = Literal[
    "invalid_input",
    "conflict",
    "invalid_credentials",
    "session_expired",
    "banned",
]


class AccountRecord(BaseModel):
    """
    Account without its password hash.

    Serialized as JSON into both the profile cache entry and the security
    snapshot. The snapshot copy is only ever read for ``id``.
    """

    id: int
    username: str
    display_name: str
    avatar_url: str
    bio: str
    exp: int = Field(..., ge=0)
    status: AccountStatus
    role: AccountRole
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    """Public profile projection returned by login and personal info."""

    id: int
    display_name: str
    avatar_url: str
    bio: str
    exp: int
    status: AccountStatus

    @classmethod
    def from_record(cls, record: AccountRecord) -> "ProfileSummary":
        return cls(
            id=record.id,
            display_name=record.display_name,
            avatar_url=record.avatar_url,
            bio=record.bio,
            exp=record.exp,
            status=record.status,
        )


class RegisterRequest(BaseModel):
    """Registration form. Field rules are enforced by the account manager."""

    username: str | None = Field(default=None, description="Username (trimmed, 1-50 chars)")
    password: str | None = Field(default=None, description="Password (1-50 chars)")
    confirmed_password: str | None = Field(default=None, description="Password again")


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(default="", description="Username")
    password: str = Field(default="", description="Password")


class RegisterResult(BaseModel):
    """Outcome of a registration attempt (no payload on success)."""

    success: bool
    message: str
    rejection_kind: RejectionKind | None = None


class LoginResult(BaseModel):
    """Outcome of a login attempt; token and profile are set on success."""

    success: bool
    message: str
    token: str | None = None
    profile: ProfileSummary | None = None
    rejection_kind: RejectionKind | None = None


class PersonalInfoResult(BaseModel):
    """Outcome of a personal info read."""

    success: bool
    message: str
    profile: ProfileSummary | None = None
    rejection_kind: RejectionKind | None = None
