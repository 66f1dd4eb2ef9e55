"""
Error taxonomy of the service and the FastAPI handlers that render it.

Every error leaves the API as ``{"detail": "<message>"}`` so the mobile client
can show the text to the user as is.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class EduTrackError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EduTrackError):
    status_code = 400


class InvalidCredentialsError(EduTrackError):
    """Login failure. One message for unknown email and wrong password."""
    status_code = 400

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthenticationError(EduTrackError):
    status_code = 401


class AuthorizationError(EduTrackError):
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(EduTrackError):
    status_code = 404


class ConflictError(EduTrackError):
    status_code = 400


def _format_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or "Invalid request"


async def edutrack_error_handler(request: Request, exc: EduTrackError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": _format_validation(exc)})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EduTrackError, edutrack_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
