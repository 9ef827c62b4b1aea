"""Redis cache layer: per-key expiry values, membership sets, and write policies."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

import redis

from app.core.config import settings
from app.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ONLINE_MEMBERS_KEY = "onlineMembers"


def profile_key(account_id: int) -> str:
    return f"profile:{account_id}"


def snapshot_key(account_id: int) -> str:
    return f"authsnapshot:{account_id}"


def token_key(account_id: int) -> str:
    return f"token:{account_id}"


class CacheLayer:
    """
    Thin wrapper over a Redis client.

    The client is thread safe and takes connections from its pool per command,
    so one instance can be shared across requests. Every Redis failure is
    re-raised as CacheUnavailableError.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def set_with_ttl(self, key: str, value: str, ttl_sec: int) -> None:
        self._call("set", self._client.set, key, value, ex=ttl_sec)

    def set_if_absent(self, key: str, value: str, ttl_sec: int) -> bool:
        """SET NX EX. Returns False when the key already holds a value."""
        return bool(self._call("set", self._client.set, key, value, ex=ttl_sec, nx=True))

    def get(self, key: str) -> str | None:
        return self._call("get", self._client.get, key)

    def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        self._call("delete", self._client.delete, key)

    def add_member(self, set_key: str, value: str) -> None:
        self._call("sadd", self._client.sadd, set_key, value)

    def remove_member(self, set_key: str, value: str) -> None:
        self._call("srem", self._client.srem, set_key, value)

    def is_member(self, set_key: str, value: str) -> bool:
        return bool(self._call("sismember", self._client.sismember, set_key, value))

    def ping(self) -> bool:
        """Return True when Redis answers; never raises."""
        try:
            return bool(self._client.ping())
        except redis.exceptions.RedisError:
            return False

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except redis.exceptions.RedisError as e:
            raise CacheUnavailableError(f"Cache {operation} failed: {e}", operation) from e


@dataclass(frozen=True)
class CacheOutcome(Generic[T]):
    """Result of a best-effort cache call: the value, or the swallowed error."""

    ok: bool
    value: T | None = None
    error: CacheUnavailableError | None = None


def best_effort(
    operation: str,
    fn: Callable[..., T],
    *args: Any,
    account_id: int | None = None,
) -> CacheOutcome[T]:
    """
    Run a recoverable cache call. Failures are logged and returned, not raised.

    Use for writes whose loss only costs a later store read (profile refresh,
    logout cleanup, moderation refresh).
    """
    try:
        return CacheOutcome(ok=True, value=fn(*args))
    except CacheUnavailableError as e:
        logger.warning(
            "Best-effort cache operation failed",
            extra={"operation": operation, "account_id": account_id, "reason": e.message[:200]},
        )
        return CacheOutcome(ok=False, error=e)


def required(
    operation: str,
    fn: Callable[..., T],
    *args: Any,
    account_id: int | None = None,
) -> T:
    """Run an unrecoverable cache call. Failures are logged and propagated."""
    try:
        return fn(*args)
    except CacheUnavailableError as e:
        logger.error(
            "Required cache operation failed",
            extra={"operation": operation, "account_id": account_id, "reason": e.message[:200]},
        )
        raise


@lru_cache
def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client (connections are opened lazily)."""
    return redis.Redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SEC,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SEC,
    )


def get_cache() -> CacheLayer:
    """Dependency that returns a cache layer over the shared Redis client."""
    return CacheLayer(get_redis_client())
