# incident_audit/config/settings.py

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "incident-audit-engine"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Security ---
    jwt_secret: str = Field(..., min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None

    # --- Storage ---
    database_url: str
    storage_backend: Literal["postgres", "memory"] = "postgres"

    # --- Broadcast ---
    redis_url: str
    rabbitmq_url: str
    broadcast_backend: Literal["rabbitmq", "redis", "none"] = "rabbitmq"
    broadcast_exchange: str = "incident_logs"
    notification_timeout_seconds: float = Field(2.0, gt=0)

    # --- Amendments ---
    projection_retry_attempts: int = Field(3, ge=1, le=10)
    projection_retry_backoff_seconds: float = Field(0.05, ge=0)
    change_reason_min_length: int = Field(10, ge=1)
    change_reason_max_length: int = Field(1000, ge=1)
    amendment_window_hours: Optional[float] = Field(None, gt=0)
    ejection_category: str = "Ejection"
    record_reclassification_revisions: bool = True

    # --- Observability ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
