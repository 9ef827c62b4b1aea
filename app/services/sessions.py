"""Session manager: login/logout orchestration over the profile cache, snapshots and online set."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from app.core.cache import (
    ONLINE_MEMBERS_KEY,
    CacheLayer,
    best_effort,
    required,
    snapshot_key,
    token_key,
)
from app.core.errors import AuthenticationError
from app.core.security import TOKEN_AUDIENCE_USER, create_access_token
from app.models.account import ACCOUNT_STATUS_BANNED
from app.schemas.account import AccountRecord, LoginResult, ProfileSummary
from app.services.credentials import CredentialVerifier
from app.services.profile import BANNED_MESSAGE, cache_profile

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

LOGIN_MESSAGE = "Login successful."


class SessionManager:
    """
    Opens and closes member sessions.

    Login writes, in order:

    1. ``profile:<id>`` (best-effort, always, even for banned accounts)
    2. ``authsnapshot:<id>`` and ``token:<id>`` (required, token lifetime)
    3. the id into ``onlineMembers`` (required)

    A failure in 2 or 3 raises CacheUnavailableError and no token is
    returned. The profile entry from 1 may already have been refreshed by
    then; that is harmless. Nothing is retried.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        cache: CacheLayer,
        settings: "Settings",
        issue_token: Callable[[int, str], str] = create_access_token,
    ) -> None:
        self._verifier = verifier
        self._cache = cache
        self._settings = settings
        self._issue_token = issue_token

    def login(self, username: str | None, password: str | None) -> LoginResult:
        try:
            account = self._verifier.authenticate(username, password)
        except AuthenticationError as e:
            logger.info("Login rejected", extra={"rejection_kind": e.rejection_kind})
            return LoginResult(
                success=False,
                message=e.message,
                rejection_kind=e.rejection_kind,
            )

        record = AccountRecord.model_validate(account)
        cache_profile(self._cache, record, self._settings.PROFILE_CACHE_TTL_SEC)

        if record.status == ACCOUNT_STATUS_BANNED:
            logger.info(
                "Login rejected",
                extra={"account_id": record.id, "rejection_kind": "banned"},
            )
            return LoginResult(
                success=False,
                message=BANNED_MESSAGE,
                rejection_kind="banned",
            )

        token = self._issue_token(record.id, TOKEN_AUDIENCE_USER)
        self._record_session(record, token)
        logger.info("Login succeeded", extra={"account_id": record.id})
        return LoginResult(
            success=True,
            message=LOGIN_MESSAGE,
            token=token,
            profile=ProfileSummary.from_record(record),
        )

    def logout(self, account_id: int) -> None:
        """Drop the caller's session artifacts. Missing keys and outages are ignored."""
        best_effort(
            "delete session token",
            self._cache.delete,
            token_key(account_id),
            account_id=account_id,
        )
        best_effort(
            "delete security snapshot",
            self._cache.delete,
            snapshot_key(account_id),
            account_id=account_id,
        )
        best_effort(
            "remove online member",
            self._cache.remove_member,
            ONLINE_MEMBERS_KEY,
            str(account_id),
            account_id=account_id,
        )
        logger.info("Logout", extra={"account_id": account_id})

    def _record_session(self, record: AccountRecord, token: str) -> None:
        ttl = self._settings.SESSION_TTL_SEC
        required(
            "write security snapshot",
            self._cache.set_with_ttl,
            snapshot_key(record.id),
            record.model_dump_json(),
            ttl,
            account_id=record.id,
        )
        required(
            "write session token",
            self._cache.set_with_ttl,
            token_key(record.id),
            token,
            ttl,
            account_id=record.id,
        )
        required(
            "add online member",
            self._cache.add_member,
            ONLINE_MEMBERS_KEY,
            str(record.id),
            account_id=record.id,
        )
