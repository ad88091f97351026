"""Custom exceptions for Notewright."""


class NotewrightError(Exception):
    """Base exception for import errors."""
    pass


class DataPackError(NotewrightError):
    """Raised when an export cannot be located, extracted or parsed."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [message])


class NoteWriteError(NotewrightError):
    """Raised when a note cannot be written to the vault."""

    def __init__(self, path, message: str):
        super().__init__(f"Failed to write {path}: {message}")
        self.path = path


class OverviewParseError(NotewrightError):
    """Raised when an existing project overview cannot be read."""

    def __init__(self, path, message: str):
        super().__init__(f"Failed to parse project overview {path}: {message}")
        self.path = path
