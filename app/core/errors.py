"""Error taxonomy shared by the account, session and profile services."""


class AccountServiceError(Exception):
    """Base class. Carries a user-presentable message and a rejection kind."""

    rejection_kind: str = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AccountServiceError):
    """Malformed input; detected locally, never touches storage."""

    rejection_kind = "invalid_input"


class ConflictError(AccountServiceError):
    """Username already exists."""

    rejection_kind = "conflict"


class AuthenticationError(AccountServiceError):
    """Bad credentials. The message never says which part was wrong."""

    rejection_kind = "invalid_credentials"


class SessionExpiredError(AuthenticationError):
    """No live security snapshot (or account) backs the caller's token."""

    rejection_kind = "session_expired"


class AuthorizationError(AccountServiceError):
    """Account is banned."""

    rejection_kind = "banned"


class DependencyError(AccountServiceError):
    """The account store or the cache layer could not be reached."""

    rejection_kind = "unavailable"

    def __init__(self, message: str, operation: str) -> None:
        self.operation = operation
        super().__init__(message)


class StoreUnavailableError(DependencyError):
    """Raised when a query against the account store fails."""


class CacheUnavailableError(DependencyError):
    """Raised when a Redis command fails."""
