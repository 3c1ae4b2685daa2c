# escalando_core/config.py
from dataclasses import dataclass, field
from functools import lru_cache
import os

from dotenv import load_dotenv

"""
escalando_core.config
=====================

Gestión centralizada de configuración del backend.

Este módulo define:
- La estructura de configuración (`Settings`)
- El mecanismo para cargar variables desde entorno (.env)
- Un acceso único y cacheado a la configuración (`get_settings`)

Convenciones
------------
- Las variables de entorno se cargan desde un archivo `.env` si existe.
- Los defaults están pensados para desarrollo local.
- Si una variable crítica (ej. DEEPL_API_KEY, JWT_SECRET) no está presente,
  el error se lanza en el lugar donde se usa, no acá.
"""

# Cargar variables de entorno desde .env (si existe)
load_dotenv()


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """
    Contenedor tipado de configuración global.

    Attributes
    ----------
    database_url:
        URL SQLAlchemy de la base de datos.
    jwt_secret:
        Clave para firmar tokens de sesión y de recuperación de contraseña.
    jwt_expire_minutes:
        Vigencia de los tokens emitidos.
    deepl_api_key / deepl_api_url / deepl_timeout:
        Credenciales y transporte del servicio de traducción.
    translation_max_workers:
        Cantidad máxima de traducciones en paralelo dentro de un request.
    smtp_*:
        Servidor de correo para los enlaces de recuperación.
    reset_url_base:
        URL del frontend a la que se agrega `?token=...`.
    """

    database_url: str
    jwt_secret: str
    jwt_expire_minutes: int = 60

    # Traducción
    deepl_api_key: str = ""
    deepl_api_url: str = "https://api-free.deepl.com/v2/translate"
    deepl_timeout: float = 10.0
    translation_max_workers: int = 4

    # Correo
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    reset_url_base: str = "https://climbingborders.org/reset"

    # HTTP
    cors_origins: list[str] = field(default_factory=list)
    environment: str = "local"
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """
    Devuelve una instancia única y cacheada de `Settings`.

    Variables de entorno utilizadas
    -------------------------------
    - DATABASE_URL (default: sqlite:///data/escalando.sqlite)
    - JWT_SECRET, JWT_EXPIRE_MINUTES
    - DEEPL_API_KEY, DEEPL_API_URL, DEEPL_TIMEOUT
    - TRANSLATION_MAX_WORKERS
    - SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS
    - RESET_URL_BASE
    - CORS_ORIGINS (separadas por coma)
    - ENVIRONMENT, LOG_LEVEL
    """
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///data/escalando.sqlite"),
        jwt_secret=os.getenv("JWT_SECRET", ""),
        jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", "60")),

        deepl_api_key=os.getenv("DEEPL_API_KEY", ""),
        deepl_api_url=os.getenv(
            "DEEPL_API_URL",
            "https://api-free.deepl.com/v2/translate"
        ),
        deepl_timeout=float(os.getenv("DEEPL_TIMEOUT", "10")),
        translation_max_workers=int(os.getenv("TRANSLATION_MAX_WORKERS", "4")),

        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_pass=os.getenv("SMTP_PASS", ""),
        reset_url_base=os.getenv("RESET_URL_BASE", "https://climbingborders.org/reset"),

        cors_origins=_split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:5500")
        ),
        environment=os.getenv("ENVIRONMENT", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
