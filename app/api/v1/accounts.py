"""Member account endpoints: register, login, personal info, logout."""

import logging
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.cache import CacheLayer, get_cache
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import DependencyError
from app.core.security import TOKEN_AUDIENCE_USER, decode_access_token
from app.schemas.account import (
    LoginRequest,
    LoginResult,
    PersonalInfoResult,
    RegisterRequest,
    RegisterResult,
)
from app.services.account_store import AccountStore
from app.services.accounts import AccountManager
from app.services.credentials import CredentialVerifier, PasswordVerificationStrategy
from app.services.profile import ProfileReader
from app.services.sessions import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

# HTTP status for each rejection kind carried in a result body.
REJECTION_STATUS = {
    "invalid_input": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "conflict": status.HTTP_409_CONFLICT,
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "session_expired": status.HTTP_401_UNAUTHORIZED,
    "banned": status.HTTP_403_FORBIDDEN,
}


def get_account_store(db: Annotated[Session, Depends(get_db)]) -> AccountStore:
    return AccountStore(db)


def get_account_manager(
    store: Annotated[AccountStore, Depends(get_account_store)],
    cache: Annotated[CacheLayer, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccountManager:
    return AccountManager(store, cache, settings)


def get_session_manager(
    store: Annotated[AccountStore, Depends(get_account_store)],
    cache: Annotated[CacheLayer, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionManager:
    verifier = CredentialVerifier(PasswordVerificationStrategy(store))
    return SessionManager(verifier, cache, settings)


def get_profile_reader(
    store: Annotated[AccountStore, Depends(get_account_store)],
    cache: Annotated[CacheLayer, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ProfileReader:
    return ProfileReader(store, cache, settings)


def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> int:
    """Dependency: require a valid Bearer JWT for the user audience and return its account id."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials, TOKEN_AUDIENCE_USER)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _unavailable(e: DependencyError) -> HTTPException:
    logger.error(
        "Dependency unavailable",
        extra={"operation": e.operation, "reason": e.message[:200]},
    )
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Service temporarily unavailable.",
    )


def _apply_status(response: Response, rejection_kind: str | None) -> None:
    if rejection_kind is not None:
        response.status_code = REJECTION_STATUS[rejection_kind]


@router.post("/register", response_model=RegisterResult)
def register(
    body: RegisterRequest,
    response: Response,
    manager: Annotated[AccountManager, Depends(get_account_manager)],
) -> RegisterResult:
    """Create a member account. Rejections carry a rejection_kind (invalid_input or conflict)."""
    try:
        result = manager.register(body.username, body.password, body.confirmed_password)
    except DependencyError as e:
        raise _unavailable(e) from e
    _apply_status(response, result.rejection_kind)
    return result


@router.post("/login", response_model=LoginResult)
def login(
    body: LoginRequest,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
) -> LoginResult:
    """
    Authenticate with username and password; returns a JWT and the profile summary.
    Include the token in the Authorization header as: Bearer <token>
    """
    try:
        result = sessions.login(body.username, body.password)
    except DependencyError as e:
        raise _unavailable(e) from e
    _apply_status(response, result.rejection_kind)
    return result


@router.get("/me", response_model=PersonalInfoResult)
def personal_info(
    response: Response,
    caller_id: Annotated[int, Depends(get_current_caller)],
    reader: Annotated[ProfileReader, Depends(get_profile_reader)],
) -> PersonalInfoResult:
    """Return the caller's own profile summary."""
    try:
        result = reader.personal_info(caller_id)
    except DependencyError as e:
        raise _unavailable(e) from e
    _apply_status(response, result.rejection_kind)
    return result


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    caller_id: Annotated[int, Depends(get_current_caller)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
) -> Response:
    """End the caller's session. Always succeeds for a valid token."""
    sessions.logout(caller_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
