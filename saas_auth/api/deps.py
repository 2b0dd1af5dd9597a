"""
Dependencias reutilizables para routers (FastAPI Depends).

- Autenticación: extrae el access token (header Bearer o cookie), lo valida y
  devuelve el usuario actual.
- Mantener esta capa delgada: sin lógica de negocio pesada.
"""
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request

from saas_auth.core.config import settings
from saas_auth.core.exceptions import Forbidden, Unauthorized
from saas_auth.services import auth_service
from saas_auth.services.cookies import AUTH_TOKEN_NAME, get_request_cookie


def extract_token(request: Request) -> Optional[str]:
    """Authorization: Bearer tiene precedencia sobre la cookie."""
    authorization = request.headers.get("authorization")
    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    return get_request_cookie(request, AUTH_TOKEN_NAME)


def client_ip(request: Request) -> str:
    """IP para rate limit. X-Forwarded-For solo cuenta con TRUST_FORWARDED_FOR."""
    forwarded = request.headers.get("x-forwarded-for") if settings.trust_forwarded_for else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def get_current_user(request: Request) -> Dict[str, Any]:
    token = extract_token(request)
    if not token:
        raise Unauthorized("No authentication token provided")
    return await auth_service.authenticate(token)


def require_role(*roles: str) -> Callable[..., Any]:
    """Dependencia que exige uno de los roles indicados sobre el usuario vivo."""

    async def _dep(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise Forbidden("Insufficient permissions")
        return user

    return _dep
