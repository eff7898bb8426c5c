# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Every error kind maps to one HTTP status and one machine-readable code:
#   Unauthenticated -> 401, Unauthorized -> 403, NotFound -> 404,
#   InvalidState / Duplicate / Validation -> 400, Upstream -> 502
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class FruityException(Exception):
    """
    Base exception for the Fruity API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "FRUITY_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Identity / Permission Exceptions
# =============================================================================

class UnauthenticatedError(FruityException):
    """Raised when a request carries no usable identity."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="UNAUTHENTICATED",
            status_code=401,
            suggestion="Sign in and send the access token as a Bearer header",
        )


class UnauthorizedError(FruityException):
    """Raised when the caller is known but may not act on the target."""

    def __init__(self, message: str = "You are not allowed to do that", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=403,
            details=details,
        )


# =============================================================================
# Not Found Exceptions
# =============================================================================

class ListingNotFoundError(FruityException):
    """Raised when a listing ID doesn't exist."""

    def __init__(self, listing_id: str):
        super().__init__(
            message=f"Listing not found: {listing_id}",
            code="LISTING_NOT_FOUND",
            status_code=404,
            suggestion="Check that the listing_id is correct and the listing hasn't been deleted",
            details={"listing_id": listing_id}
        )


class RequestNotFoundError(FruityException):
    """Raised when a pickup request ID doesn't exist."""

    def __init__(self, request_id: str):
        super().__init__(
            message=f"Request not found: {request_id}",
            code="REQUEST_NOT_FOUND",
            status_code=404,
            suggestion="Check that the request_id is correct",
            details={"request_id": request_id}
        )


class PropertyNotFoundError(FruityException):
    """Raised when the caller has no property on file."""

    def __init__(self, user_id: str):
        super().__init__(
            message="No property found for this user",
            code="PROPERTY_NOT_FOUND",
            status_code=404,
            suggestion="Set up your property with POST /property first",
            details={"user_id": user_id}
        )


class UserNotFoundError(FruityException):
    """Raised when a user ID doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            status_code=404,
            details={"user_id": user_id}
        )


# =============================================================================
# State Exceptions
# =============================================================================

class InvalidStateError(FruityException):
    """Raised when a status transition isn't allowed from the current status."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move request from '{current}' to '{requested}'",
            code="INVALID_STATE",
            status_code=400,
            suggestion="Reload the request; its status may have changed",
            details={"current_status": current, "requested_status": requested}
        )


class ListingNotActiveError(FruityException):
    """Raised when requesting a listing that is no longer active."""

    def __init__(self, listing_id: str, status: str):
        super().__init__(
            message="Listing is not active",
            code="LISTING_NOT_ACTIVE",
            status_code=400,
            suggestion="Browse the map for other active listings",
            details={"listing_id": listing_id, "status": status}
        )


class DuplicateRequestError(FruityException):
    """Raised when the requester already has a request for this listing."""

    def __init__(self, listing_id: str):
        super().__init__(
            message="You already requested this listing",
            code="DUPLICATE_REQUEST",
            status_code=400,
            suggestion="Check your outgoing requests for its status",
            details={"listing_id": listing_id}
        )


# =============================================================================
# Validation Exceptions
# =============================================================================

class InvalidInputError(FruityException):
    """Raised when required fields are missing or malformed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


class SelfRequestError(InvalidInputError):
    """Raised when an owner tries to request their own listing."""

    def __init__(self, listing_id: str):
        super().__init__(
            message="You cannot request your own listing",
            details={"listing_id": listing_id},
        )


class PropertyRequiredError(FruityException):
    """Raised when creating a listing without a verified property."""

    def __init__(self):
        super().__init__(
            message="A verified property is required to create listings",
            code="PROPERTY_REQUIRED",
            status_code=400,
            suggestion="Verify your home location with POST /property while standing at it",
        )


class PropertyTooFarError(FruityException):
    """Raised when the claimed property is too far from the live GPS reading."""

    def __init__(self, distance_meters: float, max_distance_meters: float):
        super().__init__(
            message=(
                f"You appear to be {distance_meters:.0f}m from this address "
                f"(must be within {max_distance_meters:.0f}m)"
            ),
            code="PROPERTY_TOO_FAR",
            status_code=400,
            suggestion="Stand at the property and retry verification",
            details={
                "distance_meters": round(distance_meters, 1),
                "max_distance_meters": max_distance_meters,
            }
        )


# =============================================================================
# Upstream Service Exceptions
# =============================================================================

class UpstreamServiceError(FruityException):
    """Raised when a dependency (geocoder, database) fails after retries."""

    def __init__(self, service: str, error: str):
        super().__init__(
            message=f"{service} is unavailable: {error}",
            code="UPSTREAM_SERVICE_ERROR",
            status_code=502,
            suggestion="Try again in a moment",
            details={"service": service, "error": error}
        )


class AddressNotFoundError(FruityException):
    """Raised when the geocoder has no match for an address."""

    def __init__(self, address: str):
        super().__init__(
            message="Address not found, please check and retry",
            code="ADDRESS_NOT_FOUND",
            status_code=400,
            suggestion='Use a full street address with city and state (e.g. "123 Main St, San Francisco, CA")',
            details={"address": address}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def fruity_exception_handler(
    request: Request,
    exc: FruityException
) -> JSONResponse:
    """
    Convert FruityException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle request body/query validation errors.

    Unknown or missing fields are rejected before any service runs, with
    the same 400 status as every other validation failure.
    """
    errors = exc.errors() if hasattr(exc, "errors") else str(exc)
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
                for err in errors
            ] if isinstance(errors, list) else errors,
        }
    )
