"""
Application-wide exception hierarchy.

Services raise these; the app factory registers one handler per type and
turns them into ``api_error`` responses with consistent status codes.

Usage:
    from auditor_monitor.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Stage", resource_id=stage_id)
    raise ValidationError("Role list is empty", details={"text": "..."})
"""


class NotFoundError(Exception):
    """Raised when an audit, participant, stage, activity or prompt does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Audit", "Activity").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed HTTP but unusable by the service layer.

    Examples: a JSON import that does not parse, a role list with no valid
    ``id:Label`` entry, a lead auditor whose role is not eligible.

    Maps to HTTP 400. State is left unchanged whenever this is raised.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
