"""Cliente MongoDB asíncrono (Motor) y helper de llamadas acotadas por timeout.

Los repositorios piden la base con `get_db()` y envuelven cada operación con
`run_bounded(...)`: un timeout o un error de PyMongo se trata como fallo
(`StorageUnavailable`), nunca como éxito lento.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from saas_auth.core.config import settings
from saas_auth.core.exceptions import Conflict, StorageUnavailable

_log = logging.getLogger("saas_auth.mongo")

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None

T = TypeVar("T")


def _build_client() -> AsyncIOMotorClient:
    uri = settings.mongo_uri
    kwargs = dict(serverSelectionTimeoutMS=int(settings.persistence_timeout_seconds * 1000))
    if uri.startswith("mongodb+srv://"):
        # SRV ya implica TLS; proveemos CA bundle para robustez
        kwargs["tlsCAFile"] = certifi.where()
    elif settings.mongo_tls:
        kwargs["tls"] = True
        kwargs["tlsCAFile"] = certifi.where()
        if settings.mongo_tls_insecure:
            kwargs["tlsAllowInvalidCertificates"] = True
        if settings.mongo_tls_allow_invalid_hostnames:
            kwargs["tlsAllowInvalidHostnames"] = True
    return AsyncIOMotorClient(uri, **kwargs)


async def init_mongo() -> None:
    """Inicializa el cliente y valida conexión (ping). No tumba la app si falla."""
    global _client, _db
    try:
        _client = _build_client()
        await asyncio.wait_for(_client.admin.command("ping"), settings.persistence_timeout_seconds)
        _db = _client[settings.mongo_db]
        _log.info("Mongo conectado (db=%s)", settings.mongo_db)
    except (PyMongoError, asyncio.TimeoutError) as e:
        _log.warning("Mongo no accesible: %s", e)
        _client = None
        _db = None


def close_mongo() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def get_db() -> AsyncIOMotorDatabase:
    """
    Devuelve la referencia a la base de datos.
    Úsalo en repositorios, no en routers.
    """
    if _db is None:
        raise StorageUnavailable(detail="Mongo no inicializado")
    return _db


def db_ready() -> bool:
    return _db is not None


async def run_bounded(op: Awaitable[T], timeout: Optional[float] = None) -> T:
    """Espera `op` con timeout; mapea fallos de persistencia a la taxonomía."""
    try:
        return await asyncio.wait_for(op, timeout or settings.persistence_timeout_seconds)
    except asyncio.TimeoutError as e:
        raise StorageUnavailable(detail="timeout de persistencia") from e
    except DuplicateKeyError as e:
        raise Conflict(detail=str(e)) from e
    except PyMongoError as e:
        raise StorageUnavailable(detail=str(e)) from e
