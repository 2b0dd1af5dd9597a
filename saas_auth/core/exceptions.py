"""
Taxonomía de errores de la API y handlers globales para respuestas consistentes.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from saas_auth.core.responses import fail


class AppError(Exception):
    """Error de aplicación con status HTTP asociado.

    `message` es seguro para el cliente; `detail` es texto interno que solo
    se devuelve en desarrollo.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class CsrfMismatch(Forbidden):
    default_message = "Invalid CSRF token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"


class RateLimited(AppError):
    status_code = 429
    default_message = "Too many attempts, please try again later"


class Internal(AppError):
    status_code = 500


class StorageUnavailable(Internal):
    default_message = "Storage unavailable"


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("saas_auth.errors")

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("%s request_id=%s detail=%s", type(exc).__name__, _req_id(request), exc.detail)
        return fail(exc.message, exc.status_code, error=exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return fail(str(exc.detail or "HTTP error"), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        return fail("Validation error", 400, error=str(exc.errors()))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        log.exception("Unhandled error request_id=%s", _req_id(request))
        return fail("Internal server error", 500, error=str(exc))
