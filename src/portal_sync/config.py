"""
Configuración del conector vía variables de entorno (o .env).
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PORTAL_LOGIN: str = Field(default="", description="Identificador de cliente en el portal")
    PORTAL_PASSWORD: str = Field(default="", description="Contraseña del portal")
    PORTAL_BASE_URL: str = Field(default="https://mabanque.fortuneo.fr", description="URL base del portal")

    STORE_PATH: str = Field(default="portal_sync.json", description="Archivo JSON del store local")

    LOG_LEVEL: str = Field(default="INFO", description="Nivel de logging (DEBUG, INFO, WARNING, ERROR)")
    HTTP_TIMEOUT: float = Field(default=30.0, description="Timeout de cada request, en segundos")

    HISTORY_YEARS: int = Field(default=10, description="Años hacia atrás en la búsqueda de operaciones")
    PAGE_SIZE: int = Field(default=100, description="Operaciones por página en la búsqueda")

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    return Settings()
