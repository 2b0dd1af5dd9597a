"""Health sin auth: responde aunque Mongo no esté disponible."""
from fastapi import APIRouter, status

from saas_auth.api.schemas.health import HealthOut
from saas_auth.core.config import settings
from saas_auth.infrastructure.db.mongo import db_ready

router = APIRouter(tags=["Health"])  # sin prefijo para mantener rutas estables


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Salud básica")
async def health() -> HealthOut:
    return HealthOut(
        success=True,
        message="OK",
        data={"status": "ok", "environment": settings.environment, "db": db_ready()},
    )
