"""Account manager: registration rules, defaults for new accounts, moderation."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from app.core.cache import CacheLayer
from app.core.errors import ConflictError, ValidationError
from app.core.security import PASSWORD_MAX_LEN, USERNAME_MAX_LEN, hash_password
from app.models import Account
from app.models.account import (
    ACCOUNT_ROLE_USER,
    ACCOUNT_STATUS_ACTIVE,
    ACCOUNT_STATUS_BANNED,
)
from app.schemas.account import AccountRecord, RegisterResult
from app.services.account_store import AccountStore
from app.services.profile import cache_profile

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Registration successful."
VALID_STATUSES = (ACCOUNT_STATUS_ACTIVE, ACCOUNT_STATUS_BANNED)


def validate_registration(
    username: str | None,
    password: str | None,
    confirmed_password: str | None,
) -> str:
    """
    Check registration fields in order; the first failing rule wins.

    Returns the trimmed username. Raises ValidationError. Never touches storage.
    """
    if username is None or not username.strip():
        raise ValidationError("Username must not be empty.")
    username = username.strip()
    if len(username) > USERNAME_MAX_LEN:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LEN} characters.")
    if not password or not confirmed_password:
        raise ValidationError("Password must not be empty.")
    if len(password) > PASSWORD_MAX_LEN or len(confirmed_password) > PASSWORD_MAX_LEN:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LEN} characters.")
    if password != confirmed_password:
        raise ValidationError("Passwords do not match.")
    return username


class AccountManager:
    """Creates accounts and keeps the profile cache honest after moderation."""

    def __init__(
        self,
        store: AccountStore,
        cache: CacheLayer,
        settings: "Settings",
        hasher: Callable[[str], str] = hash_password,
    ) -> None:
        self._store = store
        self._cache = cache
        self._settings = settings
        self._hasher = hasher

    def register(
        self,
        username: str | None,
        password: str | None,
        confirmed_password: str | None,
    ) -> RegisterResult:
        """
        Register a new member account.

        Validation and conflict failures come back as a rejected result.
        StoreUnavailableError propagates.
        """
        try:
            username = validate_registration(username, password, confirmed_password)
            if self._store.find_by_username(username) is not None:
                raise ConflictError("Username already exists.")
            account_id = self._create(username, password)
        except (ValidationError, ConflictError) as e:
            logger.info(
                "Registration rejected",
                extra={"rejection_kind": e.rejection_kind, "reason": e.message},
            )
            return RegisterResult(
                success=False,
                message=e.message,
                rejection_kind=e.rejection_kind,
            )
        logger.info("Account registered", extra={"account_id": account_id})
        return RegisterResult(success=True, message=REGISTERED_MESSAGE)

    def set_status(self, account_id: int, status: str) -> AccountRecord | None:
        """
        Ban or unban an account, then overwrite its profile cache entry.

        The fresh record replaces any cached copy, so a concurrent read-through
        cannot put the old status back. Returns None when the account does not
        exist.
        """
        if status not in VALID_STATUSES:
            raise ValidationError(f"Unknown account status: {status}")
        account = self._store.update_status(account_id, status)
        if account is None:
            return None
        record = AccountRecord.model_validate(account)
        if not cache_profile(self._cache, record, self._settings.PROFILE_CACHE_TTL_SEC):
            logger.warning(
                "Profile cache may serve a stale status until it expires",
                extra={"account_id": account_id, "status": status},
            )
        logger.info("Account status changed", extra={"account_id": account_id, "status": status})
        return record

    def _create(self, username: str, password: str) -> int:
        prefix = self._settings.DISPLAY_NAME_PREFIX

        def _assign_display_name(account: Account) -> None:
            account.display_name = f"{prefix}{account.id}"

        account = Account(
            username=username,
            password_hash=self._hasher(password),
            display_name="",
            avatar_url=self._settings.DEFAULT_AVATAR_URL,
            bio=self._settings.DEFAULT_BIO,
            exp=0,
            status=ACCOUNT_STATUS_ACTIVE,
            role=ACCOUNT_ROLE_USER,
            created_at=datetime.now(timezone.utc),
            deleted_at=None,
        )
        return self._store.insert(account, on_id_assigned=_assign_display_name)
