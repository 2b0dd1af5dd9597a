"""
Transporte de cookies de autenticación.

Todas las cookies de auth (access, refresh, CSRF) se escriben y borran desde
aquí con atributos fijos: HttpOnly (salvo CSRF), Secure en producción,
SameSite=Lax, Path=/ y Max-Age igual al TTL del token.
"""
from typing import Optional

from fastapi import Request, Response

from saas_auth.core.config import settings

AUTH_TOKEN_NAME = "auth_token"
REFRESH_TOKEN_NAME = "refresh_token"
CSRF_TOKEN_NAME = "csrf_token"


def _set(response: Response, name: str, value: str, *, max_age: int, httponly: bool = True) -> Response:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=httponly,
        samesite=settings.cookie_samesite,
    )
    return response


def _delete(response: Response, name: str, *, httponly: bool = True) -> Response:
    response.delete_cookie(
        key=name,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=httponly,
        samesite=settings.cookie_samesite,
    )
    return response


def set_auth_cookie(response: Response, token: str) -> Response:
    return _set(response, AUTH_TOKEN_NAME, token, max_age=settings.access_token_expire_minutes * 60)


def set_refresh_cookie(response: Response, token: str) -> Response:
    return _set(response, REFRESH_TOKEN_NAME, token, max_age=settings.refresh_token_expire_days * 86400)


def set_csrf_cookie(response: Response, token: str) -> Response:
    # Legible por JS: el cliente debe reenviarla en X-CSRF-Token
    return _set(response, CSRF_TOKEN_NAME, token, max_age=settings.csrf_token_expire_seconds, httponly=False)


def clear_auth_cookies(response: Response) -> Response:
    _delete(response, AUTH_TOKEN_NAME)
    _delete(response, REFRESH_TOKEN_NAME)
    _delete(response, CSRF_TOKEN_NAME, httponly=False)
    return response


def get_request_cookie(request: Request, name: str) -> Optional[str]:
    return request.cookies.get(name) or None
