"""
Unified error handling
Standard error response format and FastAPI exception handlers.

- Application errors map to HTTP status codes by error code
- Unknown errors are recorded in the operation log
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from .exceptions import BaseApplicationError


class ErrorResponse:
    """Standard error response"""

    def __init__(self, error_code: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 http_status: int = 400):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def to_json_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )


class ErrorHandler:
    """Global error handler"""

    # Error code -> HTTP status
    ERROR_CODE_STATUS_MAP = {
        "BusinessLogicError": 400,
        "SessionNotFoundError": 404,
        "VERSION_CONFLICT": 409,
        "AUDIT_BLOCKED": 422,
        "DatabaseError": 500,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def handle_application_error(cls, error: BaseApplicationError) -> ErrorResponse:
        http_status = cls.ERROR_CODE_STATUS_MAP.get(error.error_code, 400)

        return ErrorResponse(
            error_code=error.error_code,
            message=error.message,
            details=error.details,
            http_status=http_status
        )

    @classmethod
    def handle_http_exception(cls, error: HTTPException) -> ErrorResponse:
        return ErrorResponse(
            error_code="HTTP_ERROR",
            message=str(error.detail),
            details={"status_code": error.status_code},
            http_status=error.status_code
        )

    @classmethod
    def handle_validation_error(cls, error: Exception) -> ErrorResponse:
        """Request payload rejected by pydantic"""
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"validation_errors": str(error)},
            http_status=422
        )

    @classmethod
    def handle_unknown_error(cls, error: Exception, db=None) -> ErrorResponse:
        error_msg = str(error) if str(error) else "Internal server error"

        error_details = {
            "type": type(error).__name__,
            "message": str(error),
            "traceback": traceback.format_exc()
        }
        cls._log_system_error(error_details, db)

        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message=error_msg,
            details={"error_type": type(error).__name__},
            http_status=500
        )

    @classmethod
    def _log_system_error(cls, error_details: Dict[str, Any], db=None):
        """Record a system error in the operation log"""
        if db is None:
            print(f"Unhandled error: {error_details['type']}: {error_details['message']}")
            return
        try:
            db.log_operation("system_error", details=error_details)
        except Exception:
            # The log table itself is unreachable; stdout is all that is left
            print(f"Failed to log error to database: {error_details}")


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    return ErrorHandler.handle_application_error(exc).to_json_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return ErrorHandler.handle_http_exception(exc).to_json_response()


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return ErrorHandler.handle_validation_error(exc).to_json_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    db = getattr(request.app.state, "db", None)
    return ErrorHandler.handle_unknown_error(exc, db).to_json_response()


def create_success_response(data: Any = None, message: str = "OK") -> Dict[str, Any]:
    """Standard success envelope"""
    response = {
        "success": True,
        "message": message
    }

    if data is not None:
        response["data"] = data

    return response
