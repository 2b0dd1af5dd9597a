"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
from fastapi import FastAPI
from saas_auth.core.config import settings
from saas_auth.infrastructure.db.mongo import init_mongo, close_mongo, db_ready
from saas_auth.infrastructure.db.bootstrap import ensure_collections
from saas_auth.api.router import public_router, versioned_router
from saas_auth.core.logging import setup_logging
from saas_auth.core.middleware import add_middlewares
from saas_auth.core.exceptions import AppError, register_exception_handlers
import logging

_log = logging.getLogger("saas_auth.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


# Startup
@app.on_event("startup")
async def on_startup():
    if settings.ensure_jwt_secret():
        _log.warning("JWT_SECRET no configurado; usando secreto de desarrollo")
    await init_mongo()
    # Garantiza colecciones/índices/validadores mínimos si hay conexión
    try:
        if db_ready():
            await ensure_collections()
        else:
            _log.warning("Mongo no listo; omitiendo ensure_collections()")
    except AppError as e:
        # No impedir el arranque si fallan validadores/índices
        _log.warning("ensure_collections() falló: %s", e.detail or e.message)


@app.on_event("shutdown")
async def on_shutdown():
    close_mongo()


# Rutas versionadas (/api/v1/...) y rutas sin versión exentas del rewrite
app.include_router(versioned_router, prefix=settings.versioned_prefix)
app.include_router(public_router, prefix=settings.api_prefix_normalized)
