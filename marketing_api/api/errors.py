"""
Exception handlers translating failures into HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from marketing_api.core.config import get_settings
from marketing_api.core.errors import AdmissionError, AdmissionFailure, ThrottleExceeded
from marketing_api.core.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_FAILURE = {
    AdmissionFailure.INVALID_NAME: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.INVALID_EMAIL: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.INVALID_SUBJECT: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.INVALID_MESSAGE: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.INVALID_SOURCE: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.INVALID_REFERRAL_CODE: status.HTTP_400_BAD_REQUEST,
    AdmissionFailure.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    AdmissionFailure.WAITLIST_FULL: status.HTTP_429_TOO_MANY_REQUESTS,
    AdmissionFailure.IP_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    AdmissionFailure.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AdmissionFailure.TOO_MANY_REQUESTS: status.HTTP_429_TOO_MANY_REQUESTS,
}


async def admission_error_handler(request: Request, exc: AdmissionError) -> JSONResponse:
    headers = None
    if isinstance(exc, ThrottleExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=STATUS_BY_FAILURE.get(exc.failure, status.HTTP_400_BAD_REQUEST),
        content={"success": False, "error": exc.code, "message": exc.message},
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    message = str(exc) if get_settings().DEBUG else "Something went wrong. Please try again."
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "SERVER_ERROR", "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AdmissionError, admission_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
