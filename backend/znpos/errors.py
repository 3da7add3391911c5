# Overview: Error taxonomy shared by the services and the HTTP boundary.

"""
Every handled failure in the core is one of these exceptions. Each carries a
`kind` (stable machine-readable name), an HTTP status for the boundary, and a
human-readable message.

NotFound covers both true absence and a tenant mismatch; callers must not be
able to tell the two apart.
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for structured core failures."""
    kind = "error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return {"error": payload}


class NotFoundError(PosError):
    kind = "not_found"
    status_code = 404


class UnauthorizedError(PosError):
    kind = "unauthorized"
    status_code = 401


class AuthenticationError(UnauthorizedError):
    """Bad credentials. Never says whether the identifier exists."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class ForbiddenError(PosError):
    kind = "forbidden"
    status_code = 403


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    kind = "validation_error"
    status_code = 400


class CapacityExceededError(PosError):
    kind = "capacity_exceeded"
    status_code = 409


class StoreUnavailableError(PosError):
    kind = "store_unavailable"
    status_code = 503

    def __init__(self, message: str = "Record store unavailable"):
        super().__init__(message)
