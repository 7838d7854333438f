"""
Custom exceptions and error handlers for consistent error responses.

Every error leaves the API as ``{success, error, code, message, details}``.
"""

import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    
    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppException):
    """Raised when the bearer credential is missing or cannot be verified."""
    
    def __init__(self, message: str = "unauthorized access"):
        super().__init__(
            message=message,
            error_code="ERR_UNAUTHORIZED",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""
    
    def __init__(self, message: str = "forbidden access", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""
    
    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ValidationError(AppException):
    """Raised when a well-formed request carries values that don't match the records."""
    
    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ConflictError(AppException):
    """Raised when the current state of a record forbids the operation."""
    
    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class InvalidTransitionError(ConflictError):
    """Raised when a parcel or rider cannot move to the requested state."""
    
    def __init__(self, entity: str, current: Any, requested: Any):
        super().__init__(
            message=f"Cannot move {entity} from '{current}' to '{requested}'",
            details={"entity": entity, "current": current, "requested": requested}
        )


class UpstreamServiceError(AppException):
    """Raised when the payment gateway (or another upstream) call fails."""
    
    def __init__(self, service: str, message: str = "Upstream service unavailable"):
        super().__init__(
            message=message,
            error_code="ERR_UPSTREAM",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service}
        )


def _error_body(error_code: str, message: Any, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": False,
        "error": True,
        "code": error_code,
        "message": message,
        "details": details,
    }


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.message, exc.details)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for framework HTTP exceptions (unknown routes, wrong methods)."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }
    
    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")
    
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error_code, exc.detail, {}),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "ERR_VALIDATION",
            "Validation error",
            {"errors": jsonable_encoder(exc.errors())}
        )
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("ERR_INTERNAL_SERVER", "An internal server error occurred", {})
    )
