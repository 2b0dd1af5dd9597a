"""Gates de contraseña compartida. Se montan sin versión bajo /api."""
from fastapi import APIRouter, Request

from saas_auth.api.deps import client_ip
from saas_auth.api.schemas.auth import ApiResponse, PasswordPayload
from saas_auth.core.config import settings
from saas_auth.core.rate_limit import admin_gate_limiter, password_gate_limiter
from saas_auth.core.responses import envelope
from saas_auth.services.password_gate import verify_shared_password

router = APIRouter(tags=["Admin"])


@router.post(
    "/admin/verify-password",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Verificar contraseña del panel admin",
)
async def verify_admin_password(request: Request, payload: PasswordPayload):
    verify_shared_password(
        password=payload.password,
        expected=settings.admin_password,
        limiter=admin_gate_limiter,
        client_ip=client_ip(request),
        gate="admin",
    )
    return envelope(True, "Password verified successfully")


@router.post(
    "/verify-password",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Verificación legacy de contraseña compartida",
)
async def verify_password(request: Request, payload: PasswordPayload):
    verify_shared_password(
        password=payload.password,
        expected=settings.admin_password,
        limiter=password_gate_limiter,
        client_ip=client_ip(request),
        gate="legacy",
    )
    return envelope(True, "Password verified successfully")
