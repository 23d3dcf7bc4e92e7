"""Error handling utilities."""

from typing import Any, Optional


class RentalsError(Exception):
    """Base exception for the rentals backend.

    ``message`` is meant for logs and developers. ``user_message`` is the only text
    that may be shown to an untrusted caller.
    """
    code = "RENTALS_ERROR"
    status_code = 500
    default_user_message = "An error occurred. Please try again or contact support."

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        user_message: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self.default_user_message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.original_error = original_error

    def to_dict(self) -> dict:
        """Public representation (never includes details)."""
        return {"error": self.user_message, "code": self.code}


class NotFoundError(RentalsError):
    """Requested record does not exist."""
    code = "NOT_FOUND"
    status_code = 404
    default_user_message = "The requested listing could not be found."


class ForbiddenError(RentalsError):
    """Acting identity may not mutate the listing."""
    code = "FORBIDDEN"
    status_code = 403
    default_user_message = "You do not have permission to modify this listing."

    def __init__(
        self,
        listing_id: str,
        owner_id: Optional[str],
        actor_id: Optional[str],
        actor_role: Optional[str],
    ):
        super().__init__(
            f"Principal {actor_id} ({actor_role}) may not modify listing {listing_id} owned by {owner_id}",
            details={
                "listing_id": listing_id,
                "owner_id": owner_id,
                "actor_id": actor_id,
                "actor_role": actor_role,
            },
        )


class ValidationError(RentalsError):
    """Malformed or missing input."""
    code = "VALIDATION_ERROR"
    status_code = 400
    default_user_message = "Please check the submitted information and try again."

    def __init__(self, message: str, errors: Optional[list[str]] = None, **kwargs: Any):
        details = kwargs.pop("details", None) or {}
        if errors:
            details["errors"] = errors
        kwargs.setdefault("user_message", message)
        super().__init__(message, details=details, **kwargs)
        self.errors = errors or [message]


class DatabaseError(RentalsError):
    """Document store operation failed."""
    code = "DATABASE_ERROR"
    status_code = 500


class StorageError(RentalsError):
    """Blob store operation failed."""
    code = "STORAGE_ERROR"
    status_code = 500
    default_user_message = "Image upload failed. Please try again."


class AuthError(RentalsError):
    """Identity provider error with a user-friendly message."""
    code = "AUTH_ERROR"
    status_code = 401


class UnknownError(RentalsError):
    """Unclassified collaborator failure."""
    code = "UNKNOWN_ERROR"
    status_code = 500
