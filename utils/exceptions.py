"""Custom exceptions for the expense tracker."""


class ExpenseTrackerError(Exception):
    """Base exception for all expense tracker errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class StorageUnavailable(ExpenseTrackerError):
    """Raised when the backing file or database is unreachable or corrupt."""

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(message, status_code=503)


class NotFound(ExpenseTrackerError):
    """Raised when a referenced record does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationFailure(ExpenseTrackerError):
    """Raised when input cannot be accepted."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ConfigError(ExpenseTrackerError):
    """Configuration-related errors."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)
