"""
Parcel Server - Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right status code.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    ParcelServerError (base)         -> 500 Internal Server Error
    ├── UnauthenticatedError         -> 401 Unauthorized
    ├── ForbiddenError               -> 403 Forbidden
    ├── NotFoundError                -> 404 Not Found
    ├── GatewayError                 -> 500 (gateway message returned verbatim)
    ├── CircuitBreakerOpenError      -> 503 Service Unavailable
    └── DatabaseError                -> 500 Internal Server Error (static message)
"""

from typing import Any, Dict, Optional


class ParcelServerError(Exception):
    """
    Base exception for all Parcel Server application errors.

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


class UnauthenticatedError(ParcelServerError):
    """
    Raised when a protected route is called without a usable bearer credential.

    When:    Authorization header missing, or not a "<scheme> <token>" pair.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized access",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(ParcelServerError):
    """
    Raised when the caller is identified but not allowed through.

    When:    The identity provider rejects the token (expired, revoked,
             malformed), or the caller asks for another user's data.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Forbidden access",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ParcelServerError):
    """
    Raised when a requested resource does not exist.

    When:    GET /parcels/{id} for an unknown id, or a payment for a parcel
             that is missing or already paid.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class GatewayError(ParcelServerError):
    """
    Raised when the payment gateway rejects a request.

    What:    Stripe refused to create the payment intent (invalid amount,
             authentication failure, outage after retries).
    HTTP:    500 Internal Server Error. The gateway's own message is passed
             back to the client unchanged so the checkout UI can show it.
    """

    def __init__(
        self,
        message: str = "Payment gateway request failed",
        gateway_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if gateway_code:
            ctx["gateway_code"] = gateway_code
        super().__init__(message=message, context=ctx)
        self.gateway_code = gateway_code


class CircuitBreakerOpenError(ParcelServerError):
    """
    Raised when the gateway circuit breaker is OPEN.

    When:    After cb_failure_threshold consecutive gateway failures.
    HTTP:    503 Service Unavailable, with Retry-After.

    State machine:
        CLOSED -> failures reach threshold -> OPEN (reject for recovery_time)
        OPEN -> recovery_time elapsed -> HALF_OPEN (one test call)
        HALF_OPEN -> success -> CLOSED / failure -> OPEN
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Payment service is temporarily unavailable due to repeated failures. "
            f"Please try again in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(ParcelServerError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost, constraint violation we did not expect, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the original error
    type is kept in `context` for the server-side log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
