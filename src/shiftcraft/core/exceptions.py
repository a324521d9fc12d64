class DomainError(Exception):
    """Base exception for business rule violations."""


class NotFoundError(DomainError):
    """Raised when a referenced id does not exist."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when a mutation would break a uniqueness or overlap rule."""


class InvalidStateError(DomainError):
    """Raised when an entity's current status does not allow the action."""
