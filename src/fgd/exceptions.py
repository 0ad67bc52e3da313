"""Domain exceptions raised by services and mapped to HTTP responses in middleware.error_handler.

Plain ``ValueError`` remains the signal for invalid input (400).
"""


class NotFoundError(LookupError):
    """The referenced resource does not exist (404)."""


class PermissionDeniedError(PermissionError):
    """The caller is authenticated but not allowed to act (403)."""


class ConflictError(ValueError):
    """The write collides with existing state, e.g. a second review (409)."""


class DataLayerError(RuntimeError):
    """A persistence step failed; the transaction must not be committed (500)."""
