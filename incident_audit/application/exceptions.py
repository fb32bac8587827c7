"""Application-layer exceptions. Do not reuse domain exceptions."""

from typing import Iterable, Tuple


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnauthenticatedError(ApplicationError):
    """Raised when no caller identity accompanies the request."""


class ForbiddenError(ApplicationError):
    """Raised when the caller is identified but may not amend this record (including locked records)."""


class RecordNotFoundError(ApplicationError):
    """Raised when the target incident log does not exist."""


class InvalidAmendmentError(ApplicationError):
    """Raised when an amendment breaks one or more validation rules. Carries every violation."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: Tuple[str, ...] = tuple(errors)
        super().__init__("; ".join(self.errors) or "Invalid amendment")


class PersistenceFailureError(ApplicationError):
    """Raised when the revision/projection unit could not be committed. Nothing was committed."""


class StorageError(ApplicationError):
    """Raised by store adapters when a read or write fails."""


class NotificationFailureError(ApplicationError):
    """Raised by broadcast channels. Always caught and logged; never fails an amendment."""
