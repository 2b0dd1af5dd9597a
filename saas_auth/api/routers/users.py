"""Gestión de usuarios desde el panel (rutas protegidas por sesión y CSRF)."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from saas_auth.api.deps import get_current_user
from saas_auth.api.schemas.auth import ApiResponse, UpdatePasswordPayload
from saas_auth.core.responses import envelope
from saas_auth.services import auth_service
from saas_auth.services.csrf import require_csrf

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(require_csrf)])


@router.put(
    "/{user_id}/update-password",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Actualizar contraseña de un usuario (solo admin)",
)
async def update_password(
    user_id: str,
    payload: UpdatePasswordPayload,
    user: Dict[str, Any] = Depends(get_current_user),
):
    await auth_service.admin_update_password(actor=user, user_id=user_id, new_password=payload.new_password)
    return envelope(True, "Password updated successfully")
