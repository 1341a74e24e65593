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

    def __init__(self, message="Validation failed.", errors=None):
        """Initialize the error.

        ``errors`` maps field names to their messages when the failure
        comes from a form.
        """
        super().__init__(message, 400)
        self.errors = errors or {}


class PermissionDeniedError(AppError):
    """Raised when the acting user may not perform an operation."""

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidTransitionError(AppError):
    """Raised when a record cannot move from its current status to another."""

    def __init__(self, current, target):
        """Initialize the error."""
        super().__init__(f"Cannot change status from '{current}' to '{target}'.", 409)
        self.current = current
        self.target = target
