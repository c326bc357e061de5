"""
SuiviTens Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for each failure the API can report.
How:   Each exception carries a client-safe message and an optional context
       dict (logged, never returned). Global handlers registered in main.py
       translate them into JSON responses.
Who:   Raised by validation, services and the auth dependency.

Exception Hierarchy:
    SuiviTensError (base)
    ├── ValidationError          → 400 Bad Request (per-field violations)
    ├── MissingParameterError    → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel


class FieldViolation(BaseModel):
    """One field that failed its constraint."""

    field: str
    message: str
    value: Any = None


class SuiviTensError(Exception):
    """
    Base exception for all SuiviTens application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SuiviTensError):
    """
    Raised when a request payload fails field validation.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "errors": [
                {"field": "systolic", "message": "systolic must be an integer between 50 and 300", "value": 301}
            ]
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        violations: Optional[Sequence[FieldViolation]] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        violations = list(violations or [])
        if field and not violations:
            violations.append(FieldViolation(field=field, message=message))
        ctx = context or {}
        ctx["fields"] = [v.field for v in violations]
        super().__init__(message=message, context=ctx)
        self.violations: List[FieldViolation] = violations

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return [v.model_dump() for v in self.violations]


class MissingParameterError(SuiviTensError):
    """
    Raised when a required query parameter is absent.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        parameters: Sequence[str],
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.parameters = list(parameters)
        ctx = context or {}
        ctx["parameters"] = self.parameters
        super().__init__(
            message=message or f"Missing required parameters: {', '.join(self.parameters)}",
            context=ctx,
        )


class AuthenticationError(SuiviTensError):
    """
    Raised when a request reaches a protected route without a resolvable identity.

    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Token is not valid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SuiviTensError):
    """
    Raised when a requested resource does not exist for the caller.

    HTTP: 404 Not Found

    A record owned by another user is reported exactly like a missing one;
    the message never includes the id or the owner.
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class DatabaseError(SuiviTensError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic; the original
    error type is kept in context and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
