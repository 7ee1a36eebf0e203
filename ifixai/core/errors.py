"""Project error hierarchy."""


class IfixaiError(Exception):
    """Base error."""


class NotFoundError(IfixaiError):
    """Raised when a conversation, key or model row does not exist."""


class ConflictError(IfixaiError):
    """Raised when a write violates a uniqueness constraint."""


class InvalidRequestError(IfixaiError):
    """Raised when a request body is missing fields or carries bad values."""
