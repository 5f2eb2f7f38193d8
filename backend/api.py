"""
Central API router and utilities for the Hotel Academy backend.

This module provides:
- A central router that includes all assessment module routers
- Exception handlers for validation and application errors
- The standard response envelope
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Dict, Any, Optional

from backend.common.error_handling import AcademyError, ErrorCode, error_response, log_error
from backend.common.logger import app_logger

# Configure logging
logger = app_logger.getChild("api")

# Create main API router
main_router = APIRouter()

# Version prefix for all API routes
API_VERSION = "v1"

# Dictionary to track registered assessment modules
registered_modules: Dict[str, APIRouter] = {}

# HTTP status for each application error code
ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND_ERROR: status.HTTP_404_NOT_FOUND,
    ErrorCode.ASSESSMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_QUESTION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_ANSWER: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.DUPLICATE_ANSWER: status.HTTP_409_CONFLICT,
    ErrorCode.SESSION_NOT_COMPLETED: status.HTTP_409_CONFLICT,
    ErrorCode.ILLEGAL_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def register_assessment_module(name: str, router: APIRouter) -> None:
    """
    Register an assessment module router with the main API router.

    Args:
        name: Name of the assessment module
        router: FastAPI router for the assessment module
    """
    if name in registered_modules:
        logger.warning(f"Assessment module '{name}' already registered, skipping")
        return

    main_router.include_router(
        router,
        prefix=f"/{API_VERSION}/{name}",
        tags=[name]
    )

    registered_modules[name] = router
    logger.info(f"Registered assessment module: {name} with {len(router.routes)} routes")


# Common validation error handler
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle validation errors and return a standardized response.

    Args:
        request: The incoming request
        exc: The validation exception

    Returns:
        A JSON response with error details
    """
    error_details = []
    for error in exc.errors():
        error_details.append({
            "location": list(error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "")
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse.error(
            "Validation error",
            details=error_details,
            code=ErrorCode.VALIDATION_ERROR.value
        )
    )


async def academy_exception_handler(request: Request, exc: AcademyError) -> JSONResponse:
    """
    Translate an application error into its HTTP status and error body.
    """
    status_code = ERROR_STATUS_CODES.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    level = logging.ERROR if status_code >= 500 else logging.INFO
    log_error(exc, level=level, include_stack_trace=False, context={"path": request.url.path})

    return JSONResponse(status_code=status_code, content=error_response(exc))


# Standard API response model
class APIResponse:
    """Standard API response structure"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        """
        Create a success response.

        Args:
            data: Response data
            message: Success message

        Returns:
            Response dictionary
        """
        return {
            "status": "success",
            "message": message,
            "data": data
        }

    @staticmethod
    def error(message: str, details: Optional[Any] = None,
              code: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an error response.

        Args:
            message: Error message
            details: Optional error details
            code: Optional error code

        Returns:
            Response dictionary
        """
        response = {
            "status": "error",
            "message": message
        }

        if details:
            response["details"] = details

        if code:
            response["code"] = code

        return response
