from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    SERVICE_NAME: str = "service"
    DATABASE_URL: str | None = None
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 5000


def load_settings(service_name: str) -> ServiceSettings:
    return ServiceSettings(SERVICE_NAME=service_name)
