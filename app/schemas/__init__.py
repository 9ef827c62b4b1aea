"""Pydantic request/response schemas."""

from app.schemas.account import (
    AccountRecord,
    LoginRequest,
    LoginResult,
    PersonalInfoResult,
    ProfileSummary,
    RegisterRequest,
    RegisterResult,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AccountRecord",
    "HealthResponse",
    "LoginRequest",
    "LoginResult",
    "PersonalInfoResult",
    "ProfileSummary",
    "RegisterRequest",
    "RegisterResult",
]
