"""
Sobre de respuesta uniforme: {success, message, data?, error?}.

`error` (texto interno) solo se expone en desarrollo.
"""
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from saas_auth.core.config import settings


def envelope(success: bool, message: str, data: Any = None, error: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if error and settings.expose_error_details:
        body["error"] = error
    return body


def ok(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(True, message, data))


def fail(message: str, status_code: int, error: Optional[str] = None, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(False, message, data, error))
