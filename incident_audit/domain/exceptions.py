"""Domain-specific exceptions. Pure domain layer, no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRecordShapeError(DomainError):
    """Raised when a stored row does not match the incident log or revision contract."""
