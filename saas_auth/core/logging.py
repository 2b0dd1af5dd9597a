"""
Configuración de logging para la aplicación e integración con Uvicorn.
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("saas_auth").setLevel(resolved)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(resolved)
    # Motor/PyMongo son muy verbosos en DEBUG
    logging.getLogger("pymongo").setLevel(max(resolved, logging.WARNING))
