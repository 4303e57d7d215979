import os
from typing import List, Optional, Union
from functools import lru_cache
import logging

import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Configuración básica
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "FitSchedule"
    PROJECT_DESCRIPTION: str = "Motor de agenda y disponibilidad de entrenadores"
    VERSION: str = "0.1.0"

    # Debug mode
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "t")
    LOG_DIR: str = "logs"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Repositorio remoto de eventos y entrenadores
    SCHEDULE_API_BASE_URL: str = "http://localhost:3000"
    SCHEDULE_EVENTS_PATH: str = "/api/schedule/events"
    SCHEDULE_TRAINERS_PATH: str = "/api/schedule/trainers"
    SCHEDULE_API_TIMEOUT_SECONDS: float = 10.0
    SCHEDULE_API_TOKEN: Optional[str] = None

    # Zona horaria del gimnasio (horarios laborales, histogramas, "esta semana")
    GYM_TIMEZONE: str = "UTC"

    @field_validator("GYM_TIMEZONE")
    def validate_gym_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"GYM_TIMEZONE desconocida: {v}")
        return v

    # Constantes de negocio
    UTILIZATION_BASELINE_HOURS: int = 40  # Jornada completa semanal
    EVENT_UNIT_PRICE: int = 1500  # Precio estimado por evento
    SLOT_SEARCH_HORIZON_DAYS: int = 7
    SLOT_STEP_MINUTES: int = 60
    DEFAULT_SLOT_DURATION_MINUTES: int = 60
    DEFAULT_PEAK_HOUR: int = 10
    DEFAULT_PEAK_DAY: int = 1

    @field_validator(
        "UTILIZATION_BASELINE_HOURS",
        "SLOT_SEARCH_HORIZON_DAYS",
        "SLOT_STEP_MINUTES",
        "DEFAULT_SLOT_DURATION_MINUTES",
    )
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("El valor debe ser mayor que 0")
        return v

    # Comportamiento del store
    ENFORCE_CONFLICT_FREE_COMMITS: bool = True
    REFRESH_ON_STARTUP: bool = True


# Usar una función con caché para obtener la configuración
@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
