"""Profile reader: read-through profile retrieval that repairs the cache on a miss."""

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError as SchemaValidationError

from app.core.cache import CacheLayer, best_effort, profile_key, snapshot_key
from app.core.errors import AuthenticationError, SessionExpiredError
from app.models.account import ACCOUNT_STATUS_BANNED
from app.schemas.account import AccountRecord, PersonalInfoResult, ProfileSummary
from app.services.account_store import AccountStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

BANNED_MESSAGE = "Account is banned."
SESSION_EXPIRED_MESSAGE = "Session expired, please log in again."


def cache_profile(cache: CacheLayer, record: AccountRecord, ttl_sec: int) -> bool:
    """Overwrite the profile cache entry for record. Best-effort; returns success."""
    outcome = best_effort(
        "refresh profile cache",
        cache.set_with_ttl,
        profile_key(record.id),
        record.model_dump_json(),
        ttl_sec,
        account_id=record.id,
    )
    return outcome.ok


def fill_profile_cache(cache: CacheLayer, record: AccountRecord, ttl_sec: int) -> bool:
    """
    Populate the profile cache entry only if it is absent (SET NX).

    A reader holding an old copy from the store must not overwrite a fresher
    entry written by login or moderation in the meantime.
    """
    outcome = best_effort(
        "fill profile cache",
        cache.set_if_absent,
        profile_key(record.id),
        record.model_dump_json(),
        ttl_sec,
        account_id=record.id,
    )
    return bool(outcome.value)


class ProfileReader:
    """Serve the caller's own profile, preferring the profile cache."""

    def __init__(self, store: AccountStore, cache: CacheLayer, settings: "Settings") -> None:
        self._store = store
        self._cache = cache
        self._settings = settings

    def personal_info(self, caller_id: int) -> PersonalInfoResult:
        """
        Return the caller's profile summary.

        The caller id is confirmed against the security snapshot; status is
        taken from the profile cache or the store, never from the snapshot.
        CacheUnavailableError on the snapshot read and StoreUnavailableError
        propagate.
        """
        try:
            account_id = self._resolve_caller(caller_id)
            record = self._load_record(account_id)
        except AuthenticationError as e:
            logger.info(
                "Personal info rejected",
                extra={"account_id": caller_id, "rejection_kind": e.rejection_kind},
            )
            return PersonalInfoResult(
                success=False,
                message=e.message,
                rejection_kind=e.rejection_kind,
            )

        if record.status == ACCOUNT_STATUS_BANNED:
            logger.info(
                "Personal info rejected",
                extra={"account_id": account_id, "rejection_kind": "banned"},
            )
            return PersonalInfoResult(
                success=False,
                message=BANNED_MESSAGE,
                rejection_kind="banned",
            )
        return PersonalInfoResult(
            success=True,
            message="OK",
            profile=ProfileSummary.from_record(record),
        )

    def _resolve_caller(self, caller_id: int) -> int:
        raw = self._cache.get(snapshot_key(caller_id))
        if raw is None:
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE)
        try:
            snapshot = AccountRecord.model_validate_json(raw)
        except SchemaValidationError as e:
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE) from e
        return snapshot.id

    def _load_record(self, account_id: int) -> AccountRecord:
        cached = best_effort(
            "read profile cache",
            self._cache.get,
            profile_key(account_id),
            account_id=account_id,
        )
        unreadable = False
        if cached.value is not None:
            try:
                return AccountRecord.model_validate_json(cached.value)
            except SchemaValidationError:
                unreadable = True
                logger.warning(
                    "Discarding unreadable profile cache entry",
                    extra={"account_id": account_id},
                )

        account = self._store.find_by_id(account_id)
        if account is None or account.deleted_at is not None:
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE)
        record = AccountRecord.model_validate(account)
        ttl = self._settings.PROFILE_CACHE_TTL_SEC
        if unreadable:
            cache_profile(self._cache, record, ttl)
        else:
            fill_profile_cache(self._cache, record, ttl)
        return record
