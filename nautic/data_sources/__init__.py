"""Data sources: Open-Meteo forecasts, Postgres spots/averages, and their factories."""

from .base import (
    CallableForecastDataSource,
    DailyWeatherSource,
    ForecastDataSource,
    HourlyAverageWeatherSource,
)
from .factory import (
    build_forecast_data_source,
    build_repository,
    build_spot_registry,
    build_weather_source,
)
from .open_meteo_client import (
    MarineHour,
    WeatherHour,
    fetch_marine_hours,
    fetch_weather_current,
    fetch_weather_hours,
)
from .postgres_source import PostgresSpotRepository

__all__ = [
    "build_forecast_data_source",
    "build_repository",
    "build_spot_registry",
    "build_weather_source",
    "PostgresSpotRepository",
    "ForecastDataSource",
    "CallableForecastDataSource",
    "DailyWeatherSource",
    "HourlyAverageWeatherSource",
    "MarineHour",
    "WeatherHour",
    "fetch_marine_hours",
    "fetch_weather_current",
    "fetch_weather_hours",
]
