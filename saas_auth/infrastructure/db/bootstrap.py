"""
Bootstrap de la base Mongo: define y aplica validadores (JSON Schema) e índices.
Se ejecuta al inicio de la app para asegurar colecciones mínimas y consistencia.
No tumba la app si algo falla; deja warnings en casos no críticos.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging

from pymongo.errors import PyMongoError

from saas_auth.infrastructure.db.mongo import get_db
from saas_auth.repositories.token_repo import TOKEN_COLL
from saas_auth.repositories.user_repo import USER_COLL

_log = logging.getLogger("saas_auth.mongo.bootstrap")


async def _collmod_or_create(name: str, validator: Dict[str, Any] | None) -> None:
    db = get_db()
    try:
        if name not in await db.list_collection_names():
            if validator:
                await db.create_collection(name, validator={"$jsonSchema": validator})
            else:
                await db.create_collection(name)
        elif validator:
            await db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
    except PyMongoError as e:
        # No aborta el arranque; solo deja sin validator estricto.
        _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


async def _ensure_indexes(name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = get_db()[name]
    for ix in indexes:
        ix = dict(ix)
        keys = ix.pop("keys")
        try:
            await coll.create_index(keys, **ix)
        except PyMongoError as e:
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


USER_VALIDATOR = {
    "bsonType": "object",
    "required": ["id", "email", "role", "company_id", "password_hash"],
    "properties": {
        "id": {"bsonType": "string"},
        "email": {"bsonType": "string", "minLength": 3, "description": "lowercase"},
        "name": {"bsonType": "string"},
        "role": {"bsonType": "string", "enum": ["user", "orgadmin", "admin"]},
        "company_id": {"bsonType": "string"},
        "password_hash": {"bsonType": "string"},
        "is_active": {"bsonType": "bool"},
    },
    "additionalProperties": True,
}

# Registro de tokens emitidos: nunca se borran (auditoría), sin índice TTL
TOKEN_VALIDATOR = {
    "bsonType": "object",
    "required": ["token_hash", "kind", "issued_at"],
    "properties": {
        "token_hash": {"bsonType": "string"},
        "user_id": {"bsonType": ["string", "null"]},
        "kind": {"bsonType": "string", "enum": ["access", "refresh"]},
        "issued_at": {"bsonType": "date"},
        "expires_at": {"bsonType": ["date", "null"]},
        "invalidated_at": {"bsonType": ["date", "null"]},
    },
    "additionalProperties": True,
}


async def ensure_collections() -> None:
    """
    Garantiza colecciones, validadores e índices mínimos.
    """
    await _collmod_or_create(USER_COLL, USER_VALIDATOR)
    await _ensure_indexes(
        USER_COLL,
        [
            {"keys": [("id", 1)], "unique": True, "name": "uniq_id"},
            {"keys": [("email", 1)], "unique": True, "name": "uniq_email"},
            {"keys": [("company_id", 1)], "name": "ix_company"},
        ],
    )

    await _collmod_or_create(TOKEN_COLL, TOKEN_VALIDATOR)
    await _ensure_indexes(
        TOKEN_COLL,
        [
            {"keys": [("token_hash", 1)], "unique": True, "name": "uniq_token_hash"},
            {"keys": [("user_id", 1), ("issued_at", -1)], "name": "ix_user_issued"},
        ],
    )
