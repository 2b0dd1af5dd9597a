"""
Creación y verificación de JWTs (HS256) para access y refresh tokens.

Mismo codec y mismo secreto para ambos tipos; cambia el TTL y el claim `type`.
Funciones puras: no tocan la base (la revocación la resuelve token_registry).
"""
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Literal, Optional
from uuid import uuid4

import jwt as pyjwt

from saas_auth.core.config import settings

TokenKind = Literal["access", "refresh"]

IDENTITY_FIELDS = ("id", "email", "role", "company_id")


class TokenError(Exception):
    """Base de fallos de verificación."""


class InvalidSignature(TokenError):
    pass


class Expired(TokenError):
    pass


class Malformed(TokenError):
    pass


@dataclass(frozen=True)
class IdentityClaims:
    id: str
    email: str
    role: str
    company_id: Optional[str] = None

    @classmethod
    def from_user(cls, user: Dict[str, Any]) -> "IdentityClaims":
        return cls(
            id=str(user["id"]),
            email=user["email"],
            role=user.get("role", "user"),
            company_id=user.get("company_id"),
        )

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "IdentityClaims":
        return cls(**{k: payload.get(k) for k in IDENTITY_FIELDS})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def access_ttl() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def refresh_ttl() -> timedelta:
    return timedelta(days=settings.refresh_token_expire_days)


def issue(claims: IdentityClaims, ttl: timedelta, *, kind: TokenKind = "access") -> str:
    """
    Firma un JWT con los claims de identidad.
    Claims: id, email, role, company_id, type, iat, exp, jti.
    """
    now = _now_utc()
    payload = claims.to_dict()
    payload.update(
        {
            "type": kind,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": uuid4().hex,
        }
    )
    return pyjwt.encode(payload, settings.resolved_jwt_secret, algorithm=settings.jwt_algorithm)


def verify(token: str, *, kind: Optional[TokenKind] = None) -> Dict[str, Any]:
    """
    Decodifica y valida firma/expiración. Devuelve el payload.

    Raises: Expired, InvalidSignature, Malformed.
    """
    try:
        payload = pyjwt.decode(
            token,
            key=settings.resolved_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except pyjwt.ExpiredSignatureError as e:
        raise Expired("Token expirado") from e
    except pyjwt.InvalidSignatureError as e:
        raise InvalidSignature("Firma inválida") from e
    except pyjwt.InvalidTokenError as e:
        raise Malformed(str(e)) from e

    if not payload.get("id") or not payload.get("email"):
        raise Malformed("Faltan claims de identidad")
    if kind is not None and payload.get("type") != kind:
        raise Malformed(f"Se esperaba un token '{kind}'")
    return payload

