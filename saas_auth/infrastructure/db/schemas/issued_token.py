"""
Modelo Pydantic para documentos de la colección `token`.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class IssuedTokenModel(BaseModel):
    token_hash: str  # sha256 del token, nunca el valor en claro
    user_id: Optional[str] = None
    kind: Literal["access", "refresh"] = "access"
    issued_at: datetime
    expires_at: Optional[datetime] = None
    invalidated_at: Optional[datetime] = None  # terminal una vez fijado

    @property
    def is_live(self) -> bool:
        return self.invalidated_at is None
