# errors.py
from typing import Dict, List, Optional


class ServiceError(Exception):
    """Base class for failures raised by the service layers."""


class ValidationFailed(ServiceError):
    def __init__(self, message: str = "Validation failed", details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class InvalidIdentifier(ValidationFailed):
    def __init__(self, raw):
        super().__init__("Invalid ID.", [{"field": "id", "message": f"Id must be a positive integer, got {raw!r}"}])


class NotFound(ServiceError):
    def __init__(self, resource: str, identifier: int):
        super().__init__(f"{resource} {identifier} not found")


class ExtractionFailure(ServiceError):
    """The model answered, but not with a usable list of action items."""


class DependencyUnavailable(ServiceError):
    """Storage or the model backend could not be reached."""
