"""
Exception handlers mapping application errors to JSON `{error, details?}`.

`details` is only included outside production.
"""

from typing import Any, Callable, Coroutine, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from ticketing.core.config import get_settings
from ticketing.core.errors import AppError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def error_response(status_code: int, message: str, details: Optional[Any] = None) -> JSONResponse:
    content: dict[str, Any] = {"error": message}
    if details is not None and not get_settings().is_production:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, AppError) else AppError(str(exc))
    if error.status_code >= 500:
        logger.error(
            "request_store_error",
            error=error.message,
            details=error.details,
            status_code=error.status_code,
        )
    return error_response(error.status_code, error.message, error.details)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in errors
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", details)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error=str(exc), error_type=type(exc).__name__)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        {"type": type(exc).__name__, "message": str(exc)},
    )


EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    AppError: app_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
