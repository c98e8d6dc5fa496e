"""
Domain exception hierarchy.

Services raise these; the handler registered in ``gatepass.main`` renders them
as ``{"detail": ..., "code": ...}`` with the matching HTTP status.
"""
from typing import Any, Dict, Optional
from fastapi import status


class GatePassError(Exception):
    """Base class for all expected, caller-facing failures."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GatePassError):
    """Malformed or missing input."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(GatePassError):
    """Requested status change is not allowed from the current status."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot move from '{current}' to '{requested}'",
            details={"current": current, "requested": requested}
        )


class AuthenticationError(GatePassError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(GatePassError):
    """Actor lacks the capability, or is not an approver of the record."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(GatePassError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(GatePassError):
    """State-violating operation: duplicate booking, re-payment and the like."""
    status_code = status.HTTP_409_CONFLICT


class InsufficientFundsError(ConflictError):
    """Not enough unbanked cash to build the requested settlement."""


class AlreadySettledError(ConflictError):
    pass


class NoApproversError(ConflictError):
    """No approver could be resolved, even after falling back to all wardens."""
