"""Error taxonomy shared by services and the HTTP layer."""


class What2EatError(Exception):
    """Base class for application errors."""


class AuthenticationError(What2EatError):
    """Raised when no user is identified for a request."""


class ValidationError(What2EatError):
    """Raised when a required field is missing or invalid."""


class InvalidTransitionError(ValidationError):
    """Raised when a session event is not valid in the current state."""


class NotFoundError(What2EatError):
    """Raised when a requested row does not exist or is not owned by the user."""


class GenerationError(What2EatError):
    """Raised when a model call fails, times out, or returns invalid data."""


class PersistenceError(What2EatError):
    """Raised when a required write fails."""
