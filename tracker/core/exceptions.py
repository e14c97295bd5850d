"""
Application-wide exception hierarchy.

Services raise these; ``tracker.utils.errors.register_error_handlers``
translates them to HTTP responses once, for every blueprint.

Usage:
    from tracker.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Activity", resource_id=activity_id)
    raise ValidationError("Invalid activity", details=[{"field": "activityTitle", "message": "..."}])
"""


class ValidationError(Exception):
    """Input is malformed or violates a business rule. Maps to HTTP 400.

    Args:
        message: Human-readable summary.
        details: Field-level list of ``{"field": ..., "message": ...}`` dicts.
    """

    def __init__(self, message: str, details: list | None = None) -> None:
        self.message = message
        self.details = details or []
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class AuthenticationError(Exception):
    """No valid credentials for the request. Maps to HTTP 401."""

    def __init__(self, message: str = "Authentication required") -> None:
        self.message = message
        super().__init__(message)


class AuthorizationError(Exception):
    """Caller is authenticated but not allowed to do this. Maps to HTTP 403."""

    def __init__(self, message: str = "Forbidden") -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(Exception):
    """Requested resource does not exist. Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Activity", "Project").
        resource_id: The key that was looked up. Logged, and echoed in the message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ConflictError(Exception):
    """Operation would duplicate a unique value. Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    status_code = 409

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        self.message = f"{resource} with {field}={value!r} already exists"
        self.details = []
        super().__init__(self.message)


class TransitionError(ConflictError):
    """Lifecycle action is not allowed from the entity's current state. HTTP 400."""

    status_code = 400

    def __init__(self, action: str, current_status: str, allowed_from: list | None = None) -> None:
        self.action = action
        self.current_status = current_status
        self.allowed_from = list(allowed_from or [])
        super().__init__("Activity", "status", current_status)
        self.message = f"Cannot {action} an activity in status {current_status}"
        if self.allowed_from:
            self.message += f" (allowed from: {', '.join(self.allowed_from)})"
        self.args = (self.message,)


class DependencyConflictError(ConflictError):
    """Delete blocked because other rows still depend on the entity. HTTP 400.

    Args:
        resource: Model name of the entity being deleted.
        message: Human-readable reason.
        details: Dependency counts, e.g. ``[{"field": "children", "message": "3"}]``.
    """

    status_code = 400

    def __init__(self, resource: str, message: str, details: list | None = None) -> None:
        super().__init__(resource, "dependencies")
        self.message = message
        self.details = details or []
        self.args = (message,)
