from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RACEWAY_", env_file=".env", extra="ignore")

    app_name: str = "raceway"

    # Racing
    race_timeout: float | None = Field(default=None, gt=0)
    warm_up: float = Field(default=0.5, ge=0)

    # HTTP executor
    http_timeout: float | None = Field(default=30.0, gt=0)
    http_max_connections: int = Field(default=100, ge=1)
    follow_redirects: bool = True
    user_agent: str = "raceway"

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    enable_metrics: bool = True


settings = Settings()
