"""
Política de borde para rutas /api: versionado implícito y CORS.

Función pura `decide(...)` que devuelve una decisión etiquetada:

- Pass(headers): continuar sin tocar la ruta (con o sin cabeceras CORS).
- Rewrite(path, query): reescribir la ruta insertando el segmento de versión.
- Preflight(headers): responder 204 sin llegar al router.

El middleware (core/middleware.py) solo aplica la decisión.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Union

VERSIONED_RE = re.compile(r"^/api/v[0-9]+(/|$)")

ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With, X-CSRF-Token"
MAX_AGE = "86400"


@dataclass(frozen=True)
class EdgePolicy:
    version: str = "v1"
    allowed_origins: FrozenSet[str] = frozenset()
    exempt_paths: FrozenSet[str] = frozenset({"/api/health", "/api/verify-password"})
    exempt_prefixes: Tuple[str, ...] = ("/api/admin/",)
    aliases: Dict[str, str] = field(default_factory=lambda: {"/api/users/login": "/api/v1/auth/login"})
    environment: str = "development"
    environment_header: str = "X-App-Environment"


@dataclass(frozen=True)
class Pass:
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Rewrite:
    path: str
    query: str = ""

    @property
    def url(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path


@dataclass(frozen=True)
class Preflight:
    headers: Dict[str, str]
    status_code: int = 204


Decision = Union[Pass, Rewrite, Preflight]


def is_exempt(path: str, policy: EdgePolicy) -> bool:
    return path in policy.exempt_paths or any(path.startswith(p) for p in policy.exempt_prefixes)


def _origin_headers(origin: Optional[str], policy: EdgePolicy) -> Dict[str, str]:
    if origin and origin in policy.allowed_origins:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }
    return {}


def decide(method: str, path: str, query: str, origin: Optional[str], policy: EdgePolicy) -> Decision:
    if path != "/api" and not path.startswith("/api/"):
        return Pass()
    if is_exempt(path, policy):
        return Pass()

    alias = policy.aliases.get(path)
    if alias:
        return Rewrite(alias, query)

    if not VERSIONED_RE.match(path):
        rest = path[len("/api"):]
        if not rest.startswith("/"):
            rest = "/" + rest
        return Rewrite(f"/api/{policy.version}{rest}", query)

    if method.upper() == "OPTIONS":
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Max-Age": MAX_AGE,
        }
        headers.update(_origin_headers(origin, policy))
        return Preflight(headers)

    headers = _origin_headers(origin, policy)
    headers[policy.environment_header] = policy.environment
    return Pass(headers)
