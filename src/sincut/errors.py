"""Application error taxonomy.

Every error carries the HTTP status it maps to; the API layer turns them
into ``{"detail": message}`` responses.
"""


class SincutError(Exception):
    """Base class for all application errors."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SincutError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Invalid request"


class AuthError(SincutError):
    """Bad credentials or token."""
    status_code = 401
    default_message = "Not authorized"


class ForbiddenError(SincutError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(SincutError):
    status_code = 404
    default_message = "Not found"


class ConflictError(SincutError):
    """Duplicate resource, e.g. an email that is already registered."""
    status_code = 400
    default_message = "Already exists"


class ServerError(SincutError):
    status_code = 500


class InvalidToken(AuthError):
    default_message = "Invalid or expired token"


class InvalidSession(AuthError):
    """Refresh token is valid but no longer the user's current session."""
    default_message = "Invalid session"


class InsufficientBalance(ValidationError):
    """Raised when a user does not hold enough coins."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"You need at least {required} coins to convert to divine coin (available: {available})"
        )


class InsufficientDivineCoins(ValidationError):
    default_message = "You need at least 1 divine coin to use"
