"""
Protección CSRF por doble envío (double-submit cookie).

El servidor no guarda estado: emite un valor aleatorio en la cookie `csrf_token`
(no HttpOnly) y en cada petición mutante exige que el cliente lo reenvíe en el
header `X-CSRF-Token` o en el campo de formulario `csrf_token`. Ambos valores
deben ser idénticos.
"""
import functools
import hmac
import logging
import secrets
from typing import Any, Awaitable, Callable, Optional, Tuple

from fastapi import Request, Response

from saas_auth.core.exceptions import CsrfMismatch
from saas_auth.core.responses import fail
from saas_auth.services.cookies import CSRF_TOKEN_NAME, get_request_cookie, set_csrf_cookie

_log = logging.getLogger("saas_auth.csrf")

CSRF_HEADER = "X-CSRF-Token"
CSRF_FORM_FIELD = "csrf_token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def create_csrf_token(response: Response) -> Tuple[str, Response]:
    """Genera el token, lo deja en la cookie de la respuesta y devuelve el valor."""
    token = generate_csrf_token()
    set_csrf_cookie(response, token)
    return token, response


async def _submitted_token(request: Request) -> Optional[str]:
    token = request.headers.get(CSRF_HEADER)
    if token:
        return token
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        value = form.get(CSRF_FORM_FIELD)
        if isinstance(value, str) and value:
            return value
    return None


async def verify(request: Request, submitted: Optional[str] = None) -> bool:
    """Compara cookie vs valor enviado. Falla si falta alguno o no son idénticos."""
    cookie_token = get_request_cookie(request, CSRF_TOKEN_NAME)
    if not cookie_token:
        return False
    token = submitted or await _submitted_token(request)
    if not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), cookie_token.encode("utf-8"))


async def require_csrf(request: Request) -> None:
    """Dependencia FastAPI: lanza CsrfMismatch en métodos mutantes sin token válido."""
    if request.method in SAFE_METHODS:
        return
    if not await verify(request):
        raise CsrfMismatch()


def _find_request(args: Tuple[Any, ...], kwargs: dict) -> Optional[Request]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def with_csrf_protection(handler: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Envuelve un endpoint async que recibe `request: Request`.

    En métodos mutantes la verificación corre antes del handler; si falla se
    responde 403 sin invocarlo.
    """

    @functools.wraps(handler)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        request = _find_request(args, kwargs)
        if request is None:
            raise RuntimeError(f"{handler.__name__} debe declarar un parámetro Request")
        if request.method not in SAFE_METHODS and not await verify(request):
            _log.warning("CSRF rechazado method=%s path=%s", request.method, request.url.path)
            return fail(CsrfMismatch.default_message, CsrfMismatch.status_code)
        return await handler(*args, **kwargs)

    return wrapper
