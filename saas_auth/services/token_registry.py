"""
Registro de tokens emitidos: permite revocar del lado servidor tokens que
siguen teniendo firma válida.

No verifica firmas (eso es token_codec); quien valida debe hacer ambos pasos.
Los errores de persistencia suben como StorageUnavailable: el llamador debe
rechazar la petición (fail closed).
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from saas_auth.infrastructure.db.schemas.issued_token import IssuedTokenModel
from saas_auth.repositories import token_repo as repo

_log = logging.getLogger("saas_auth.registry")


async def record(
    token: str,
    *,
    user_id: Optional[str] = None,
    kind: str = "access",
    expires_at: Optional[datetime] = None,
) -> None:
    doc = repo.create_token_doc(
        raw_token=token,
        user_id=user_id,
        kind=kind,
        issued_at=datetime.now(timezone.utc),
        expires_at=expires_at,
    )
    await repo.insert_token(doc)


async def is_valid(token: str) -> bool:
    doc = await repo.get_token_by_hash(repo.hash_token(token))
    return doc is not None and IssuedTokenModel.model_validate(doc).is_live


async def invalidate(token: str) -> bool:
    """True si el token pasó de vivo a inválido; False si no existía o ya estaba inválido."""
    changed = await repo.mark_invalidated(repo.hash_token(token))
    if not changed:
        _log.info("invalidate: token desconocido o ya invalidado")
    return changed
