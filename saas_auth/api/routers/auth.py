"""Rutas de autenticación: login, logout, refresh, validate, CSRF y reseteo de contraseña."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from saas_auth.api.deps import client_ip, extract_token, get_current_user, require_role
from saas_auth.api.schemas.auth import (
    ApiResponse,
    LoginPayload,
    ResetConfirmPayload,
    ResetRequestPayload,
)
from saas_auth.core.config import settings
from saas_auth.core.exceptions import AppError, Internal, Unauthorized, ValidationError
from saas_auth.core.responses import envelope, fail, ok
from saas_auth.services import auth_service
from saas_auth.services.cookies import (
    REFRESH_TOKEN_NAME,
    clear_auth_cookies,
    get_request_cookie,
    set_auth_cookie,
    set_refresh_cookie,
)
from saas_auth.services.csrf import create_csrf_token, with_csrf_protection

router = APIRouter(prefix="/auth", tags=["Auth"])

_log = logging.getLogger("saas_auth.auth.routes")


@router.get(
    "/csrf",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Emitir token CSRF",
    description="Genera un token CSRF, lo deja en la cookie y lo devuelve en el body.",
)
async def csrf(response: Response):
    token, _ = create_csrf_token(response)
    return envelope(True, "CSRF token generated successfully", {"csrfToken": token})


@router.post(
    "/login",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Login con email y contraseña",
    description="Emite access + refresh token, los registra y los deja en cookies.",
)
@with_csrf_protection
async def login(request: Request, response: Response, payload: LoginPayload):
    result = await auth_service.login(
        email=payload.email or "",
        password=payload.password or "",
        client_ip=client_ip(request),
    )
    set_auth_cookie(response, result.tokens.access_token)
    set_refresh_cookie(response, result.tokens.refresh_token)
    return envelope(True, "Login successful", {"token": result.tokens.access_token, "user": result.user})


@router.get(
    "/validate",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Validar sesión actual",
    description="Verifica firma, registro y usuario vivo; devuelve la identidad.",
)
async def validate(user: Dict[str, Any] = Depends(get_current_user)):
    return envelope(True, "Token is valid", {"user": user})


@router.post(
    "/refresh",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Rotar access token",
    description="Usa la cookie de refresh para emitir un access token nuevo e invalida el anterior.",
)
@with_csrf_protection
async def refresh(request: Request, response: Response):
    try:
        result = await auth_service.refresh(
            refresh_token=get_request_cookie(request, REFRESH_TOKEN_NAME),
            old_access_token=extract_token(request),
        )
    except Unauthorized as e:
        return clear_auth_cookies(fail(e.message, 401, error=e.detail))
    except AppError as e:
        _log.warning("refresh falló: %s", e.detail or e.message)
        return clear_auth_cookies(fail("Token refresh failed", 401, error=e.detail))
    except Exception as e:
        _log.exception("refresh: error inesperado")
        return clear_auth_cookies(fail("Token refresh failed", 401, error=str(e)))

    set_auth_cookie(response, result.access_token)
    return envelope(True, "Token refreshed successfully", {"token": result.access_token, "user": result.user})


@router.post(
    "/logout",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Cerrar sesión",
    description="Invalida el token actual y borra las cookies de auth siempre.",
)
@with_csrf_protection
async def logout(request: Request):
    try:
        outcome = await auth_service.logout(
            token=extract_token(request),
            refresh_token=get_request_cookie(request, REFRESH_TOKEN_NAME),
        )
    except AppError as e:
        resp = fail(e.message, e.status_code, error=e.detail)
    except Exception as e:
        _log.exception("logout: error inesperado")
        resp = fail("An error occurred during logout", 500, error=str(e))
    else:
        if outcome == "not_found":
            resp = fail("Token not found or already invalidated", 400)
        else:
            resp = ok("Logged out successfully")
    return clear_auth_cookies(resp)


@router.post(
    "/reset-password/request",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Solicitar reseteo de contraseña",
    description="Responde siempre lo mismo exista o no el email.",
)
@with_csrf_protection
async def reset_password_request(request: Request, payload: ResetRequestPayload):
    await auth_service.request_password_reset(payload.email)
    return envelope(True, auth_service.RESET_REQUEST_MESSAGE)


@router.get(
    "/reset-password/verify",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Verificar token de reseteo",
    description="Valida el token sin consumirlo y devuelve el email para la UI.",
)
async def reset_password_verify(token: Optional[str] = Query(default=None, description="Token de reseteo")):
    if not token:
        raise ValidationError("Token is required")
    payload = await auth_service.check_reset_token(token)
    if payload is None:
        raise ValidationError("Invalid or expired reset token")
    return envelope(True, "Token is valid", {"email": payload.email})


@router.post(
    "/reset-password/confirm",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Confirmar reseteo de contraseña",
    description="Valida token y contraseña nueva y la persiste.",
)
@with_csrf_protection
async def reset_password_confirm(request: Request, payload: ResetConfirmPayload):
    await auth_service.confirm_password_reset(token=payload.token, new_password=payload.password)
    return envelope(True, "Password has been reset successfully")


@router.get(
    "/default-password",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Contraseña por defecto de clientes",
    description="Solo admin/orgadmin. Devuelve CLIENT_PASSWORD.",
)
async def default_password(user: Dict[str, Any] = Depends(require_role("admin", "orgadmin"))):
    if not settings.client_password:
        raise Internal("Server configuration error", detail="CLIENT_PASSWORD no configurado")
    return envelope(True, "successful", {"defaultClientPassword": settings.client_password})
