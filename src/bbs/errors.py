"""Domain exceptions surfaced to GraphQL clients as error messages."""


class ValidationError(ValueError):
    """Raised when client input breaks a forum rule."""

    pass


class NotFoundError(ValueError):
    """Raised when a requested thread, post or user does not exist."""

    pass


class AuthenticationRequired(PermissionError):
    """Raised when an operation needs a logged-in user."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
