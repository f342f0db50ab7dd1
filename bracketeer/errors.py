"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class TournamentStateError(AppError):
    """Raised when an operation is not allowed in the tournament's current status."""

    def __init__(self, message="Operation not allowed in the current tournament status."):
        """Initialize the error."""
        super().__init__(message, 409)


class InsufficientParticipantsError(AppError):
    """Raised when a bracket is requested for fewer than two participants."""

    def __init__(self, message="Tournament requires at least 2 participants."):
        """Initialize the error."""
        super().__init__(message, 400)


class MatchNotFoundError(NotFoundError):
    """Raised when a match id is not part of the bracket."""

    def __init__(self, message="Match not found."):
        """Initialize the error."""
        super().__init__(message)


class MatchNotReadyError(AppError):
    """Raised when a result is reported before both players are assigned."""

    def __init__(
        self,
        message="Cannot record a result before both players are assigned.",
    ):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidWinnerError(AppError):
    """Raised when the reported winner is not one of the match's players."""

    def __init__(self, message="Winner not found in match players."):
        """Initialize the error."""
        super().__init__(message, 400)


class InconsistentStateError(AppError):
    """Raised when a result would be applied twice or the bracket is corrupted.

    Recovering requires a manual bracket reset.
    """

    def __init__(self, message="Bracket is in an inconsistent state."):
        """Initialize the error."""
        super().__init__(message, 409)
