"""
Operaciones de persistencia para el registro de tokens emitidos.

Solo se guarda el hash SHA-256 del token. Los documentos no se borran nunca:
invalidar es fijar `invalidated_at`.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import hashlib

from saas_auth.infrastructure.db.mongo import get_db, run_bounded
from saas_auth.infrastructure.db.schemas.issued_token import IssuedTokenModel

TOKEN_COLL = "token"


def _dt(dt: datetime) -> datetime:
    # Asegura timezone-aware en UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_token_doc(
    *,
    raw_token: str,
    user_id: Optional[str],
    kind: str,
    issued_at: datetime,
    expires_at: Optional[datetime],
) -> Dict[str, Any]:
    """Construye documento listo para insertar en `token` (hash + metadatos)."""
    model = IssuedTokenModel(
        token_hash=hash_token(raw_token),
        user_id=user_id,
        kind=kind,
        issued_at=_dt(issued_at),
        expires_at=_dt(expires_at) if expires_at else None,
    )
    return model.model_dump()


async def insert_token(doc: Dict[str, Any]) -> str:
    res = await run_bounded(get_db()[TOKEN_COLL].insert_one(doc))
    return str(res.inserted_id)


async def get_token_by_hash(token_hash: str) -> Optional[Dict[str, Any]]:
    return await run_bounded(get_db()[TOKEN_COLL].find_one({"token_hash": token_hash}))


async def mark_invalidated(token_hash: str) -> bool:
    """Marca el token como inválido solo si seguía vivo.

    Update condicional: con llamadas concurrentes exactamente una ve True.
    """
    res = await run_bounded(
        get_db()[TOKEN_COLL].update_one(
            {"token_hash": token_hash, "invalidated_at": None},
            {"$set": {"invalidated_at": datetime.now(timezone.utc)}},
        )
    )
    return res.modified_count > 0
