"""
Rate limit simple en memoria (ventana fija por clave, normalmente la IP).

Uso típico:
- Login: login_limiter.check(ip)
- Gate de admin: admin_gate_limiter.check(ip)

`RateLimiter` es la capacidad que consumen los servicios; en despliegues con
varios procesos se puede inyectar una implementación respaldada por un store
compartido. `InMemoryRateLimiter` es la implementación por defecto (se reinicia
con el proceso).
"""
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Dict, Protocol

from saas_auth.core.config import settings


class RateLimiter(Protocol):
    def check(self, key: str) -> bool:
        """Devuelve True si se permite la acción y registra el intento."""
        ...


@dataclass
class _Window:
    count: int
    reset_time: float


class InMemoryRateLimiter:
    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = monotonic) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def _purge(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_time]
        for k in expired:
            del self._windows[k]

    def check(self, key: str) -> bool:
        now = self._clock()
        self._purge(now)
        w = self._windows.get(key)
        if w is None:
            w = self._windows[key] = _Window(count=0, reset_time=now + self.window_seconds)
        if w.count >= self.limit:
            return False
        w.count += 1
        return True

    def reset(self) -> None:
        """Limpia los contadores (útil en tests o reinicios)."""
        self._windows.clear()


login_limiter = InMemoryRateLimiter(settings.login_rate_limit, settings.rate_limit_window_seconds)
# Un limiter por gate de contraseña compartida
admin_gate_limiter = InMemoryRateLimiter(settings.password_verify_rate_limit, settings.rate_limit_window_seconds)
password_gate_limiter = InMemoryRateLimiter(settings.password_verify_rate_limit, settings.rate_limit_window_seconds)


def reset_all() -> None:
    for limiter in (login_limiter, admin_gate_limiter, password_gate_limiter):
        limiter.reset()
