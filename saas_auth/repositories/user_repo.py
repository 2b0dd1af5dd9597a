"""Persistencia de usuarios (solo lo que necesita la autenticación)."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from saas_auth.infrastructure.db.mongo import get_db, run_bounded

USER_COLL = "user"

# Nunca salen de este servicio
PRIVATE_FIELDS = ("_id", "password_hash", "password")


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Copia del usuario sin hash de contraseña ni `_id` de Mongo."""
    return {k: v for k, v in user.items() if k not in PRIVATE_FIELDS}


def is_active(user: Dict[str, Any]) -> bool:
    return bool(user.get("is_active", True))


async def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Busca usuario por email (los emails se guardan en minúsculas)."""
    return await run_bounded(get_db()[USER_COLL].find_one({"email": email.strip().lower()}))


async def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    return await run_bounded(get_db()[USER_COLL].find_one({"id": user_id}))


async def update_password_hash(user_id: str, password_hash: str) -> bool:
    """Actualiza el hash; devuelve False si el usuario no existe."""
    res = await run_bounded(
        get_db()[USER_COLL].update_one(
            {"id": user_id},
            {"$set": {"password_hash": password_hash, "updated_at": datetime.now(timezone.utc)}},
        )
    )
    return res.matched_count > 0
