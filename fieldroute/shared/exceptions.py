"""Domain exceptions shared by the scheduling, visit and geocoding layers"""

from typing import Optional

from fastapi import status


class FieldRouteError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(FieldRouteError, ValueError):
    """Malformed schedule rule or request (never partially applied)

    Also a ValueError so pydantic validators report it as a field error.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class NotFoundError(FieldRouteError):
    """Referenced rule, visit or customer does not exist"""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier):
        super().__init__(f"{resource} with identifier '{identifier}' not found")
        self.resource = resource
        self.identifier = identifier


class StateConflictError(FieldRouteError):
    """Visit status transition not allowed from the current state"""

    status_code = status.HTTP_409_CONFLICT
    error_code = "STATE_CONFLICT"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move visit from '{current}' to '{target}'")
        self.current = current
        self.target = target


class UpstreamUnavailableError(FieldRouteError):
    """Geocoding provider failed, timed out or is not configured"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "UPSTREAM_UNAVAILABLE"


class ConsistencyError(FieldRouteError):
    """Reconciliation left duplicate or missing visits for a rule"""

    error_code = "CONSISTENCY_ERROR"
