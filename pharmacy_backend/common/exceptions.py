# common/exceptions.py

"""
SERVICE ERRORS

Centralized domain errors shared by every service layer.

Every error carries:
- code: stable machine-readable kind (mapped to HTTP status by common.api)
- message: human-readable text returned to the caller

None of these are retried internally.
"""


class ServiceError(Exception):
    """Base exception for all service failures."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)

    def __str__(self):
        return self.message


class ValidationError(ServiceError):
    """Malformed input or a business-rule violation."""

    code = "VALIDATION_ERROR"


class NotFoundError(ServiceError):
    """A pharmacy-scoped entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found")


class ForbiddenError(ServiceError):
    """Cross-tenant access or role violation."""

    code = "FORBIDDEN"


class ConflictError(ServiceError):
    """Duplicate key or an action that was already performed."""

    code = "CONFLICT"


class InternalError(ServiceError):
    """Infrastructure failure (store errors). Raised `from` the cause."""

    code = "INTERNAL_ERROR"
