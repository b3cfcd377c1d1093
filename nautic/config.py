"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration for the Nautic conditions service."""
    model_config = SettingsConfigDict(env_prefix="NAUTIC_", extra="ignore")

    database_url: str = "sqlite:///./nautic.db"
    spot_source: str = "static"  # options: static, postgres
    weather_source: str = "open_meteo"  # options: open_meteo, postgres
    timezone: str = "America/Argentina/Buenos_Aires"
    forecast_days: int = 7
    fetch_max_workers: int = 8
    request_timeout_seconds: float = 10.0
    http_cache_seconds: int = 900
    cors_origin: str = "*"
    api_key: str | None = None
    api_key_redis_url: str | None = None
    api_key_redis_set: str = "api_keys"
    log_level: str = "INFO"

    @field_validator("spot_source", "weather_source", mode="after")
    @classmethod
    def lower_source_name(cls, v: str) -> str:
        """Source names are matched case-insensitively."""
        return v.strip().lower()

    @field_validator("forecast_days", mode="after")
    @classmethod
    def clamp_forecast_days(cls, v: int) -> int:
        """Open-Meteo serves at most 16 days; day offsets need at least one."""
        return max(1, min(16, v))

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated ``cors_origin`` as a list."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


settings = Settings()
