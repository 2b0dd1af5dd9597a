"""
Middlewares de aplicación: request id, logging por petición y política de borde
(versionado de /api + CORS).
"""
import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from saas_auth.core.config import settings
from saas_auth.core.edge_routing import EdgePolicy, Pass, Preflight, Rewrite, decide
from saas_auth.core.responses import fail


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-Id"] = rid
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.log = logging.getLogger("saas_auth.request")

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status = 0
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            dt_ms = int((time.perf_counter() - start) * 1000)
            rid = getattr(request.state, "request_id", None)
            self.log.info(
                "method=%s path=%s status=%s latency_ms=%s request_id=%s",
                request.method, request.scope.get("path"), status, dt_ms, rid,
            )


def build_edge_policy() -> EdgePolicy:
    return EdgePolicy(
        version=settings.api_version,
        allowed_origins=frozenset(settings.allowed_origins),
        environment=settings.environment,
        environment_header=settings.environment_header,
    )


class EdgeRoutingMiddleware(BaseHTTPMiddleware):
    """Aplica `edge_routing.decide` antes del router.

    Tras un rewrite la decisión se reevalúa una vez sobre la ruta nueva, así
    las rutas reescritas reciben el mismo tratamiento CORS que las versionadas.
    """

    def __init__(self, app: FastAPI, policy: Optional[EdgePolicy] = None) -> None:
        super().__init__(app)
        self.policy = policy or build_edge_policy()
        self.log = logging.getLogger("saas_auth.edge")

    async def dispatch(self, request: Request, call_next):
        scope = request.scope
        origin = request.headers.get("origin")
        query = scope.get("query_string", b"").decode("latin-1")
        decision = decide(request.method, scope["path"], query, origin, self.policy)

        if isinstance(decision, Rewrite):
            self.log.debug("rewrite %s -> %s", scope["path"], decision.path)
            scope["path"] = decision.path
            scope["raw_path"] = decision.path.encode("utf-8")
            decision = decide(request.method, decision.path, query, origin, self.policy)
            if isinstance(decision, Rewrite):
                decision = Pass()

        if isinstance(decision, Preflight):
            return Response(status_code=decision.status_code, headers=decision.headers)

        try:
            response = await call_next(request)
        except Exception as e:
            # El 500 también lleva las cabeceras CORS
            self.log.exception("error no manejado path=%s", scope["path"])
            response = fail("Internal server error", 500, error=str(e))
        for name, value in decision.headers.items():
            response.headers[name] = value
        return response


def add_middlewares(app: FastAPI) -> None:
    # El último agregado es el más externo: logging > request id > borde
    app.add_middleware(EdgeRoutingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)
