"""
Tokens de reseteo de contraseña: cortos, firmados con un secreto derivado
(`reset_token_secret_prefix + JWT secret`) y con `purpose=password_reset`, de
modo que no sirven como token de sesión ni viceversa.

No se persisten ni se marcan como consumidos: la validez depende solo de
firma + expiración, y el pipeline compara el email con el usuario vivo.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import jwt as pyjwt
from pydantic import BaseModel, ValidationError

from saas_auth.core.config import settings

_log = logging.getLogger("saas_auth.reset_token")

PURPOSE = "password_reset"


class ResetTokenPayload(BaseModel):
    id: str
    email: str
    purpose: str
    nonce: str


def get_reset_token_expiry() -> int:
    """TTL configurado en segundos (solo para mostrar al usuario)."""
    return settings.reset_token_expire_minutes * 60


def generate_reset_token(user_id: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "email": email,
        "purpose": PURPOSE,
        # Nonce aleatorio: dos tokens del mismo segundo son distintos
        "nonce": secrets.token_hex(16),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=get_reset_token_expiry())).timestamp()),
    }
    return pyjwt.encode(payload, settings.reset_token_secret, algorithm=settings.jwt_algorithm)


def verify_reset_token(token: str) -> Optional[ResetTokenPayload]:
    """Devuelve el payload o None ante cualquier fallo (nunca lanza)."""
    try:
        data = pyjwt.decode(token, key=settings.reset_token_secret, algorithms=[settings.jwt_algorithm])
        parsed = ResetTokenPayload.model_validate(data)
    except (pyjwt.InvalidTokenError, ValidationError) as e:
        _log.info("Reset token rechazado: %s", type(e).__name__)
        return None
    if parsed.purpose != PURPOSE:
        return None
    return parsed


def build_reset_url(token: str) -> str:
    base = settings.app_base_url.rstrip("/")
    return f"{base}/reset-password?{urlencode({'token': token})}"
