"""Factory helpers for choosing the spot registry and weather source at startup."""

from __future__ import annotations

from nautic import config
from nautic.data_sources.base import (
    CallableForecastDataSource,
    DailyWeatherSource,
    ForecastDataSource,
    HourlyAverageWeatherSource,
)
from nautic.data_sources.open_meteo_client import (
    fetch_marine_hours,
    fetch_weather_current,
    fetch_weather_hours,
)
from nautic.spots import SpotRegistry, StaticSpotRegistry
from utils.logging_utils import get_tagged_logger, mask_db_url

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_WEATHER_SOURCE = "open_meteo"
DEFAULT_SPOT_SOURCE = "static"


def build_forecast_data_source() -> ForecastDataSource:
    """Hourly weather and marine data straight from Open-Meteo."""
    return CallableForecastDataSource(
        weather_current=fetch_weather_current,
        weather_hours=fetch_weather_hours,
        marine_hours=fetch_marine_hours,
    )


def build_repository(settings: config.Settings | None = None):
    """Open the Postgres repository described by ``database_url``."""
    from .postgres_source import PostgresSpotRepository

    settings = settings or config.settings
    db_url = settings.database_url
    if not db_url:
        raise ValueError("database_url must be set for the Postgres repository")
    logger.info("Using Postgres repository", extra={"db_url": mask_db_url(db_url)})
    return PostgresSpotRepository.from_url(db_url, timezone=settings.timezone)


def build_weather_source(settings: config.Settings | None = None, *, repository=None) -> DailyWeatherSource:
    """Instantiate the configured daily weather source."""
    settings = settings or config.settings
    source = (settings.weather_source or DEFAULT_WEATHER_SOURCE).lower()

    if source == "open_meteo":
        logger.info("Using Open-Meteo weather source")
        return HourlyAverageWeatherSource(
            build_forecast_data_source(),
            timezone=settings.timezone,
            forecast_days=settings.forecast_days,
        )

    if source == "postgres":
        return repository or build_repository(settings)

    raise ValueError(f"Unknown weather source '{source}'")


def build_spot_registry(settings: config.Settings | None = None, *, repository=None) -> SpotRegistry:
    """Instantiate the configured spot registry."""
    settings = settings or config.settings
    source = (settings.spot_source or DEFAULT_SPOT_SOURCE).lower()

    if source == "static":
        logger.info("Using static spot registry")
        return StaticSpotRegistry()

    if source == "postgres":
        return repository or build_repository(settings)

    raise ValueError(f"Unknown spot source '{source}'")
