"""FastAPI dependencies for dependency injection."""
from functools import lru_cache

from nautic.config import settings
from nautic.data_sources import (
    DailyWeatherSource,
    ForecastDataSource,
    PostgresSpotRepository,
    build_forecast_data_source,
    build_repository,
    build_spot_registry,
    build_weather_source,
)
from nautic.spots import SpotRegistry


@lru_cache()
def get_repository() -> PostgresSpotRepository:
    """Get cached database repository instance."""
    return build_repository(settings)


@lru_cache()
def get_spot_registry() -> SpotRegistry:
    """Get cached spot registry (static list or database)."""
    repository = get_repository() if settings.spot_source == "postgres" else None
    return build_spot_registry(settings, repository=repository)


@lru_cache()
def get_weather_source() -> DailyWeatherSource:
    """Get cached daily weather source (Open-Meteo averages or database)."""
    repository = get_repository() if settings.weather_source == "postgres" else None
    return build_weather_source(settings, repository=repository)


@lru_cache()
def get_forecast_data_source() -> ForecastDataSource:
    """Get cached hourly Open-Meteo data source for spot detail views."""
    return build_forecast_data_source()
