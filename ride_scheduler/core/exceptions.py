"""
Domain errors raised by the ride lifecycle engine.

Every error carries a ``kind`` so callers can tell a missing ride from a
forbidden one or from a conflicting status change without parsing
messages. The HTTP layer maps ``status_code`` straight onto the response.
"""

from typing import Any, Dict, Optional


class RideSchedulerError(Exception):
    """Base class for all domain rejections."""
    
    kind = "error"
    status_code = 400
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "details": self.details or None,
        }


class NotFoundError(RideSchedulerError):
    kind = "not_found"
    status_code = 404


class InvalidTransitionError(RideSchedulerError):
    kind = "invalid_transition"
    status_code = 409


class PolicyViolationError(RideSchedulerError):
    kind = "policy_violation"
    status_code = 400


class ForbiddenError(RideSchedulerError):
    kind = "forbidden"
    status_code = 403


class ValidationFailureError(RideSchedulerError):
    kind = "validation_failure"
    status_code = 422
