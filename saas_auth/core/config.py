"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del repositorio.
- Agrupa ajustes por área: App, CORS, Cookies, Mongo, Auth/JWT, Reset, Rate limit.
"""
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resuelve el .env ubicado en la raíz del repo (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

# Solo para desarrollo/tests; en producción JWT_SECRET es obligatorio
DEV_JWT_SECRET = "dev-only-jwt-secret-change-me"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "SaaS Auth API"
    environment: Literal["development", "test", "production"] = Field(
        "development",
        validation_alias=AliasChoices("ENVIRONMENT", "APP_ENV", "NODE_ENV"),
    )
    api_prefix: str = "/api"
    api_version: str = "v1"
    app_base_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    # CORS (lista estática; en desarrollo se suman cors_dev_origins)
    cors_origins: list[str] = ["http://localhost:3000", "https://app.example.com"]
    cors_dev_origins: list[str] = ["http://localhost:8000", "http://127.0.0.1:3000"]
    environment_header: str = "X-App-Environment"

    # Cookies
    cookie_domain: str | None = None
    cookie_samesite: Literal["lax", "strict"] = "lax"

    # Mongo
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "saas_auth"
    mongo_tls: bool = False
    # TLS relax options (dev only)
    mongo_tls_insecure: bool = False
    mongo_tls_allow_invalid_hostnames: bool = False
    persistence_timeout_seconds: float = 10.0

    # Auth / JWT
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 30
    csrf_token_expire_seconds: int = 60 * 60 * 3

    # Reset de contraseña (token corto, firmado con secreto derivado)
    reset_token_expire_minutes: int = 5
    reset_token_secret_prefix: str = "pwd_reset_"
    password_min_length: int = 8
    admin_password_min_length: int = 6

    # Secretos compartidos (gate de admin y password por defecto de clientes)
    admin_password: str | None = None
    client_password: str | None = None

    # SMTP (opcional; sin host/credenciales los correos solo se loguean)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_from_email: str | None = None
    smtp_from_name: str = "SaaS Admin"
    smtp_use_tls: bool = True

    # Rate limit en memoria (por IP)
    # Solo detrás de un proxy propio: si no, X-Forwarded-For lo controla el cliente
    trust_forwarded_for: bool = False
    login_rate_limit: int = 10
    password_verify_rate_limit: int = 5
    rate_limit_window_seconds: int = 60

    # --- Utilidades derivadas / helpers ---
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def expose_error_details(self) -> bool:
        """El campo `error` de las respuestas solo se incluye en desarrollo."""
        return self.is_development

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.is_development:
            origins += [o for o in self.cors_dev_origins if o not in origins]
        return origins

    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final (excepto cuando es solo '/')
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        if len(pref) > 1 and pref.endswith('/'):
            pref = pref[:-1]
        return pref

    @property
    def versioned_prefix(self) -> str:
        return f"{self.api_prefix_normalized}/{self.api_version}"

    @property
    def resolved_jwt_secret(self) -> str:
        if self.jwt_secret:
            return self.jwt_secret
        if self.is_production:
            raise RuntimeError("JWT_SECRET es obligatorio en producción")
        return DEV_JWT_SECRET

    def ensure_jwt_secret(self) -> bool:
        """Valida el secreto al arranque. True si se usa el secreto de desarrollo.

        Raises: RuntimeError en producción sin JWT_SECRET.
        """
        return self.resolved_jwt_secret == DEV_JWT_SECRET

    @property
    def reset_token_secret(self) -> str:
        return f"{self.reset_token_secret_prefix}{self.resolved_jwt_secret}"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # no fallar si hay variables no usadas
    )


settings = Settings()
