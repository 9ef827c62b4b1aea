"""Credential verification: username/password in, full account out."""

from collections.abc import Callable
from typing import Protocol

from app.core.errors import AuthenticationError
from app.core.security import verify_password
from app.models import Account
from app.services.account_store import AccountStore

# Same message for unknown user and wrong password (no username enumeration).
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."


class VerificationStrategy(Protocol):
    """Loads an account and checks the supplied secret against it."""

    def verify(self, username: str, password: str) -> Account: ...


class PasswordVerificationStrategy:
    """Check a password against the bcrypt hash stored on the account row."""

    def __init__(
        self,
        store: AccountStore,
        check_password: Callable[[str, str], bool] = verify_password,
    ) -> None:
        self._store = store
        self._check_password = check_password

    def verify(self, username: str, password: str) -> Account:
        account = self._store.find_by_username(username.strip())
        if account is None or account.deleted_at is not None:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        if not self._check_password(password, account.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        return account


class CredentialVerifier:
    """
    Authenticate raw credentials through a pluggable strategy.

    Raises AuthenticationError on any credential problem and lets
    DependencyError from the store propagate.
    """

    def __init__(self, strategy: VerificationStrategy) -> None:
        self._strategy = strategy

    def authenticate(self, username: str | None, password: str | None) -> Account:
        if not username or not username.strip() or not password:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        return self._strategy.verify(username, password)
