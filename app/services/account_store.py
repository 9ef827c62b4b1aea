"""Account store: keyed access to durable account rows."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, StoreUnavailableError
from app.models import Account

logger = logging.getLogger(__name__)

USERNAME_INDEX = "ix_accounts_username"


def _is_username_conflict(error: IntegrityError) -> bool:
    """True when the integrity error is a violation of the username unique index."""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == USERNAME_INDEX
    # SQLite reports the column, not the index: "UNIQUE constraint failed: accounts.username"
    message = str(error.orig)
    return "UNIQUE" in message and "accounts.username" in message


class AccountStore:
    """Queries and writes against the accounts table through one DB session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_username(self, username: str) -> Account | None:
        with self._guard("find_by_username"):
            return (
                self._session.query(Account)
                .filter(Account.username == username)
                .first()
            )

    def find_by_id(self, account_id: int) -> Account | None:
        with self._guard("find_by_id"):
            return self._session.get(Account, account_id)

    def find_max_id(self) -> int | None:
        """Highest assigned id, or None for an empty store."""
        with self._guard("find_max_id"):
            return self._session.query(func.max(Account.id)).scalar()

    def insert(
        self,
        account: Account,
        on_id_assigned: Callable[[Account], None] | None = None,
    ) -> int:
        """
        Persist a new account and return its id.

        The id comes from the identity column. on_id_assigned runs after the
        id is known and before commit, for fields derived from the id.
        Raises ConflictError when the username is already taken and
        StoreUnavailableError for any other failure, including other
        integrity violations.
        """
        try:
            self._session.add(account)
            self._session.flush()
            if on_id_assigned is not None:
                on_id_assigned(account)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            if _is_username_conflict(e):
                raise ConflictError("Username already exists.") from e
            logger.error("Account insert violated a constraint", extra={"reason": str(e.orig)[:200]})
            raise StoreUnavailableError(f"Account store insert failed: {e.orig}", "insert") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Account insert failed", extra={"reason": str(e)[:200]})
            raise StoreUnavailableError(f"Account store insert failed: {e}", "insert") from e
        return account.id

    def update_status(self, account_id: int, status: str) -> Account | None:
        """Set an account's moderation status. Returns None for unknown ids."""
        with self._guard("update_status"):
            account = self._session.get(Account, account_id)
            if account is None:
                return None
            account.status = status
            self._session.commit()
            return account

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(
                "Account store query failed",
                extra={"operation": operation, "reason": str(e)[:200]},
            )
            raise StoreUnavailableError(
                f"Account store {operation} failed: {e}", operation
            ) from e
