"""
Error taxonomy for the user service.

Each error carries a stable ``code`` and the HTTP status it maps to. The
message of 5xx errors is for logs only; handlers replace it with a generic
one before it reaches the caller.
"""
from typing import Optional


class UserServiceError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmailAlreadyExists(UserServiceError):
    code = "EMAIL_ALREADY_EXISTS"
    status_code = 409

    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message)


class UserNotFound(UserServiceError):
    code = "USER_NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "User profile not found"):
        super().__init__(message)


class IdentityProviderError(UserServiceError):
    """
    The identity provider call failed.

    ``outcome_unknown`` is set when the request timed out and the provider
    may or may not have applied it.
    """

    def __init__(self, message: str, status: Optional[int] = None, outcome_unknown: bool = False):
        super().__init__(message)
        self.status = status
        self.outcome_unknown = outcome_unknown


class PersistenceError(UserServiceError):
    """Local write failed after the identity provider account was created."""

    def __init__(self, message: str, external_id: Optional[str] = None):
        super().__init__(message)
        self.external_id = external_id


class CompensationFailed(PersistenceError):
    """The compensating delete of an orphaned provider account failed."""
