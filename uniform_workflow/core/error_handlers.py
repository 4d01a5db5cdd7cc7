from fastapi import Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.exceptions import AppException, StatusConflictError, WorkflowChainError
from uniform_workflow.utils.response import error_response
import logging

logger = logging.getLogger(__name__)


# -------------------------
# APP EXCEPTIONS
# -------------------------
async def app_exception_handler(request: Request, exc: AppException):
    if isinstance(exc, WorkflowChainError):
        logger.error(
            "Workflow chain rolled back",
            extra={"path": request.url.path, "failed_step": exc.step},
        )
    elif isinstance(exc, StatusConflictError):
        logger.warning(
            "Concurrent status write rejected",
            extra={"path": request.url.path, **(exc.details or {})},
        )
    elif exc.error_code == ErrorCode.INVALID_STATUS_TRANSITION:
        details = exc.details or {}
        logger.info(
            "Status transition refused",
            extra={
                "path": request.url.path,
                "entity_type": details.get("entity_type"),
                "entity_id": details.get("entity_id"),
                "from": details.get("current_status"),
                "to": details.get("requested_status"),
            },
        )

    return error_response(request, exc.status_code, exc.detail, exc.error_code, exc.details)


# -------------------------
# FASTAPI VALIDATION
# -------------------------
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    return error_response(
        request,
        422,
        "Invalid request data",
        ErrorCode.VALIDATION_ERROR,
        exc.errors(),
    )


# -------------------------
# HTTP EXCEPTIONS (mapped)
# -------------------------
HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.VALIDATION_ERROR,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(
        exc.status_code,
        ErrorCode.INTERNAL_ERROR,
    )
    return error_response(request, exc.status_code, exc.detail, error_code)


# -------------------------
# DB INTEGRITY ERRORS
# -------------------------
async def integrity_error_handler(
    request: Request, exc: IntegrityError
):
    # unique keys (PR/PO/GRN/invoice numbers, one invoice per GRN) that slipped past the service checks
    logger.exception("DB Integrity error", extra={"path": request.url.path})

    return error_response(
        request,
        409,
        "Database constraint violation",
        ErrorCode.CONFLICT,
    )


# -------------------------
# LAST RESORT
# -------------------------
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return error_response(
        request,
        500,
        "Something went wrong. Please try again.",
        ErrorCode.INTERNAL_ERROR,
    )
