"""
Error kinds raised by the time-tracking core.

These represent domain-level failures and know nothing about HTTP; the API
layer maps each ``code`` to a response at the boundary.
"""

from typing import Optional


class TimeTrackingError(Exception):
    """Base exception for all time-tracking errors."""

    code = "error"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InputValidationError(TimeTrackingError):
    """Raised when input fields are malformed or missing."""

    code = "validation_error"

    def __init__(self, errors: list):
        super().__init__("Validation error", details={"errors": errors})
        self.errors = errors


class ConflictError(TimeTrackingError):
    """Raised when ``start`` is called while an entry is already running."""

    code = "conflict"

    def __init__(self, owner_id: int):
        super().__init__("Already running", details={"owner_id": owner_id})


class InvalidStateError(TimeTrackingError):
    """Raised when ``end`` is called with nothing running."""

    code = "invalid_state"

    def __init__(self, owner_id: int):
        super().__init__("No running entry", details={"owner_id": owner_id})


class NotOwnedError(TimeTrackingError):
    """Raised when a referenced project or tag does not belong to the caller."""

    code = "not_owned"

    def __init__(self, kind: str, ids: list):
        if kind == "project":
            message = "Project not found or not yours"
        else:
            message = "One or more tags not found or not yours"
        super().__init__(message, details={"kind": kind, "ids": ids})


class NotFoundError(TimeTrackingError):
    """Raised when a project or tag to update or delete is not the caller's."""

    code = "not_found"

    def __init__(self, kind: str, item_id: int):
        super().__init__(
            f"{kind.capitalize()} not found", details={"kind": kind, "id": item_id}
        )


class EmailExistsError(TimeTrackingError):
    """Raised when registering an email that already has an account."""

    code = "email_exists"

    def __init__(self, email: str):
        super().__init__("Email exists", details={"email": email})


class InvalidCredentialsError(TimeTrackingError):
    """Raised when an email and password do not match an account."""

    code = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid credentials")


class StorageError(TimeTrackingError):
    """Raised when the persistence layer fails unexpectedly."""

    code = "storage_error"

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Storage failure during {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(message, details={"operation": operation})
