"""
Service-wide exception hierarchy.

Services raise these types; the app factory registers one error handler
per type, so every endpoint maps failures to the same HTTP status codes:

    ValidationError      → 400 (with field-level ``details``)
    AuthenticationError  → 401
    AuthorizationError   → 403
    NotFoundError        → 404
    ConflictError        → 409

Usage:
    from onboarding.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="ChecklistItem", resource_id=item_id)
    raise ValidationError("Invalid checklist item", details={"day": "..."})
"""


class OnboardingError(Exception):
    """Base class so callers can catch every domain error at once."""


class NotFoundError(OnboardingError):
    """Raised when a referenced record does not exist.

    Args:
        resource: Human-readable entity name (e.g. "ChecklistItem", "User").
        resource_id: The id that was looked up. Logged, not returned to clients.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(OnboardingError):
    """Raised when input is malformed or out of range.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names and
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(OnboardingError):
    """Raised when an operation would duplicate a unique key (e.g. email).

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value (kept out of the HTTP response).
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class AuthenticationError(OnboardingError):
    """Raised when the request carries no valid session."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationError(OnboardingError):
    """Raised when a valid session lacks the role an operation needs."""

    def __init__(self, message: str = "Insufficient permissions", required: list[str] | None = None) -> None:
        self.required = required or []
        super().__init__(message)
