# errors.py
import logging
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(AppError):
    """A database statement failed; the cause is logged, never returned."""

    def to_body(self) -> dict:
        return {"message": "Internal Server Error"}


def first_validation_error(exc: RequestValidationError) -> ValidationError:
    errors = exc.errors()
    if not errors:
        return ValidationError("Invalid request")
    err = errors[0]
    # integer parts are list indices or JSON decode offsets, not field names
    loc = [
        str(part) for part in err.get("loc", ())
        if not isinstance(part, int) and part not in ("body", "path", "query")
    ]
    field = ".".join(loc) or None
    msg = err.get("msg", "Invalid value")
    return ValidationError(f"{field}: {msg}" if field else msg, field=field)


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = first_validation_error(exc)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, error.message)
    return JSONResponse(status_code=error.status_code, content=error.to_body())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
