"""Domain-specific exceptions for the SmartSpend core services."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when a transaction or other record cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""


class ParseError(PersistenceError):
    """Raised when a persisted snapshot cannot be decoded."""
