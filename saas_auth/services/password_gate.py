"""
Gates de contraseña compartida (panel admin y verificación legacy).

El rate limit se aplica antes de comparar. Cada gate recibe su propio limiter.
"""
import logging
from typing import Optional

from saas_auth.core.exceptions import Internal, RateLimited, Unauthorized, ValidationError
from saas_auth.core.rate_limit import RateLimiter
from saas_auth.infrastructure.security.passwords import constant_time_equals

_log = logging.getLogger("saas_auth.password_gate")


def verify_shared_password(
    *,
    password: Optional[str],
    expected: Optional[str],
    limiter: RateLimiter,
    client_ip: str,
    gate: str,
) -> None:
    """Lanza RateLimited / ValidationError / Internal / Unauthorized; retorna si coincide."""
    if not limiter.check(client_ip):
        _log.warning("gate=%s rate limit ip=%s", gate, client_ip)
        raise RateLimited()
    if not password:
        raise ValidationError("Password is required")
    if not expected:
        _log.error("gate=%s sin contraseña configurada", gate)
        raise Internal("Server configuration error")
    if not constant_time_equals(password, expected):
        raise Unauthorized("Incorrect password")
