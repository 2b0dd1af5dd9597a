"""
Lógica de autenticación: login, validación, refresh, logout y reseteo de contraseña.

Cada token se valida en dos pasos explícitos: firma/expiración (token_codec) y
vigencia en el registro (token_registry). Después se relee el usuario vivo
para detectar bajas o cambios de rol.
"""
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from starlette.concurrency import run_in_threadpool

from saas_auth.core.config import settings
from saas_auth.core.exceptions import (
    Forbidden,
    NotFound,
    RateLimited,
    StorageUnavailable,
    Unauthorized,
    ValidationError,
)
from saas_auth.core.rate_limit import RateLimiter, login_limiter
from saas_auth.infrastructure.email import notifier
from saas_auth.infrastructure.security import token_codec
from saas_auth.infrastructure.security.passwords import hash_password, verify_password
from saas_auth.infrastructure.security.reset_token import (
    ResetTokenPayload,
    build_reset_url,
    generate_reset_token,
    get_reset_token_expiry,
    verify_reset_token,
)
from saas_auth.infrastructure.security.token_codec import Expired, IdentityClaims, TokenError
from saas_auth.repositories import user_repo
from saas_auth.repositories.user_repo import is_active, public_user
from saas_auth.services import token_registry

_log = logging.getLogger("saas_auth.auth")

INVALID_CREDENTIALS = "Invalid credentials"
RESET_REQUEST_MESSAGE = "If the email exists, password reset instructions will be sent"

LogoutOutcome = Literal["invalidated", "not_found", "storage_error"]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    tokens: TokenPair
    user: Dict[str, Any]


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    user: Dict[str, Any]


async def _issue_and_record(claims: IdentityClaims, kind: token_codec.TokenKind) -> str:
    ttl = token_codec.access_ttl() if kind == "access" else token_codec.refresh_ttl()
    token = token_codec.issue(claims, ttl, kind=kind)
    await token_registry.record(
        token, user_id=claims.id, kind=kind, expires_at=datetime.now(timezone.utc) + ttl
    )
    return token


async def issue_token_pair(user: Dict[str, Any]) -> TokenPair:
    claims = IdentityClaims.from_user(user)
    access = await _issue_and_record(claims, "access")
    refresh = await _issue_and_record(claims, "refresh")
    return TokenPair(access_token=access, refresh_token=refresh)


async def login(
    *, email: str, password: str, client_ip: str, limiter: RateLimiter = login_limiter
) -> LoginResult:
    # Rate limit antes de cualquier verificación de hash
    if not limiter.check(client_ip):
        raise RateLimited()
    if not email or not password:
        raise ValidationError("Email and password are required")

    try:
        user = await user_repo.find_user_by_email(email)
    except StorageUnavailable as e:
        _log.warning("login: no se pudo consultar usuario: %s", e.detail)
        raise Unauthorized(INVALID_CREDENTIALS) from e

    if not user or not is_active(user):
        raise Unauthorized(INVALID_CREDENTIALS)
    matches = await run_in_threadpool(verify_password, password, user.get("password_hash") or "")
    if not matches:
        raise Unauthorized(INVALID_CREDENTIALS)

    tokens = await issue_token_pair(user)
    _log.info("login ok user_id=%s", user.get("id"))
    return LoginResult(tokens=tokens, user=public_user(user))


async def authenticate(token: str) -> Dict[str, Any]:
    """Valida un access token y devuelve el usuario vivo (sin campos privados)."""
    try:
        payload = token_codec.verify(token, kind="access")
    except Expired as e:
        raise Unauthorized("Token expired") from e
    except TokenError as e:
        raise Unauthorized("Invalid token", detail=str(e)) from e

    if not await token_registry.is_valid(token):
        raise Unauthorized("Token has been invalidated")

    user = await user_repo.get_user_by_id(IdentityClaims.from_payload(payload).id)
    if not user or not is_active(user):
        raise Unauthorized("User not found")
    return public_user(user)


async def _invalidate_previous_access(old_access_token: str, user_id: str) -> None:
    # Solo se toca el registro si el token viejo es nuestro y del mismo usuario
    try:
        old = token_codec.verify(old_access_token, kind="access")
    except TokenError:
        return
    if IdentityClaims.from_payload(old).id != user_id:
        return
    try:
        await token_registry.invalidate(old_access_token)
    except StorageUnavailable as e:
        _log.warning("refresh: no se pudo invalidar el access token previo: %s", e.detail)


async def refresh(*, refresh_token: Optional[str], old_access_token: Optional[str] = None) -> RefreshResult:
    if not refresh_token:
        raise Unauthorized("No refresh token provided")
    try:
        payload = token_codec.verify(refresh_token, kind="refresh")
    except TokenError as e:
        raise Unauthorized("Invalid refresh token", detail=str(e)) from e

    if not await token_registry.is_valid(refresh_token):
        raise Unauthorized("Refresh token has been invalidated")

    user = await user_repo.get_user_by_id(IdentityClaims.from_payload(payload).id)
    if not user or not is_active(user):
        raise Unauthorized("User not found")

    if old_access_token:
        await _invalidate_previous_access(old_access_token, str(user["id"]))

    access = await _issue_and_record(IdentityClaims.from_user(user), "access")
    return RefreshResult(access_token=access, user=public_user(user))


async def logout(*, token: Optional[str], refresh_token: Optional[str] = None) -> LogoutOutcome:
    if not token:
        raise ValidationError("No authentication token provided")
    try:
        found = await token_registry.invalidate(token)
    except StorageUnavailable as e:
        _log.warning("logout: no se pudo invalidar el token: %s", e.detail)
        return "storage_error"

    if refresh_token:
        try:
            await token_registry.invalidate(refresh_token)
        except StorageUnavailable as e:
            _log.warning("logout: no se pudo invalidar el refresh token: %s", e.detail)
    return "invalidated" if found else "not_found"


async def request_password_reset(email: str) -> None:
    """No revela si el email existe: el llamador responde siempre lo mismo."""
    try:
        user = await user_repo.find_user_by_email(email)
    except StorageUnavailable as e:
        _log.warning("reset-request: no se pudo consultar usuario: %s", e.detail)
        return
    if not user:
        _log.info("reset-request para email inexistente")
        return

    token = generate_reset_token(str(user["id"]), user["email"])
    try:
        await run_in_threadpool(
            notifier.send_password_reset, user["email"], build_reset_url(token), get_reset_token_expiry() // 60
        )
    except (smtplib.SMTPException, OSError) as e:
        # Misma respuesta al cliente: el fallo de envío no revela si el email existe
        _log.error("reset-request: no se pudo enviar el correo: %s", e)


async def check_reset_token(token: str) -> Optional[ResetTokenPayload]:
    """Firma + expiración + email igual al del usuario vivo; None si algo falla."""
    payload = verify_reset_token(token)
    if payload is None:
        return None
    user = await user_repo.get_user_by_id(payload.id)
    if not user or user.get("email") != payload.email:
        return None
    return payload


async def confirm_password_reset(*, token: Optional[str], new_password: Optional[str]) -> None:
    if not token or not new_password:
        raise ValidationError("Token and new password are required")
    if len(new_password) < settings.password_min_length:
        raise ValidationError(f"Password must be at least {settings.password_min_length} characters long")

    payload = verify_reset_token(token)
    if payload is None:
        raise ValidationError("Invalid or expired reset token")

    user = await user_repo.get_user_by_id(payload.id)
    if not user:
        raise NotFound("User not found")
    if user.get("email") != payload.email:
        raise ValidationError("Invalid token")

    new_hash = await run_in_threadpool(hash_password, new_password)
    await user_repo.update_password_hash(str(user["id"]), new_hash)
    _log.info("password reseteada user_id=%s", user["id"])


async def admin_update_password(*, actor: Dict[str, Any], user_id: str, new_password: Optional[str]) -> None:
    if not new_password:
        raise ValidationError("New password is required")
    if len(new_password) < settings.admin_password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.admin_password_min_length} characters long"
        )
    if actor.get("role") != "admin":
        raise Forbidden("Unauthorized to update user passwords")

    new_hash = await run_in_threadpool(hash_password, new_password)
    if not await user_repo.update_password_hash(user_id, new_hash):
        raise NotFound("User not found")
    _log.info("password actualizada por admin actor=%s user_id=%s", actor.get("id"), user_id)
