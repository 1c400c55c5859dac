class DomainError(Exception):
    """Base exception for the attendance core."""


class ValidationError(DomainError):
    """Raised when input data is invalid (empty note, bad time string, ...)."""


class NotFoundError(DomainError):
    """Raised when a person, leave or event id does not exist."""


class ReconciliationRequiredError(DomainError):
    """Raised when a path needs reconciled events but finds unreconciled ones."""

    def __init__(self, message: str, event_ids: tuple[int, ...] = ()):
        super().__init__(message)
        self.event_ids = event_ids


class TransientError(DomainError):
    """Timeout or IO failure from a collaborator. Safe to retry."""
