"""Interfaces and helpers for weather data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol

import requests

from nautic.averaging import MAX_DAY_INDEX, average_for_day, check_day_index
from nautic.data_sources.open_meteo_client import MarineHour, WeatherHour
from nautic.domain import Spot, WeatherSample
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/base")

# Marine data is optional: these leave wave height unknown, not the whole reading.
MARINE_FETCH_ERRORS = (requests.RequestException, LookupError)


class ForecastDataSource(Protocol):
    """Interface for anything that can provide hourly weather and wave data."""

    def fetch_weather_current(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
    ) -> WeatherHour:
        """Return the current weather observation."""
        ...

    def fetch_weather_hours(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
        forecast_days: int = 7,
    ) -> List[WeatherHour]:
        """Return hourly weather observations."""
        ...

    def fetch_marine_hours(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
        forecast_days: int = 7,
    ) -> List[MarineHour]:
        """Return hourly wave heights."""
        ...


@dataclass
class CallableForecastDataSource(ForecastDataSource):
    """Wrap three callables so they can be swapped for different backends."""

    weather_current: Callable[..., WeatherHour]
    weather_hours: Callable[..., List[WeatherHour]]
    marine_hours: Callable[..., List[MarineHour]]

    def fetch_weather_current(self, *args, **kwargs) -> WeatherHour:
        """Delegate to the configured current-weather callable."""
        return self.weather_current(*args, **kwargs)

    def fetch_weather_hours(self, *args, **kwargs) -> List[WeatherHour]:
        """Delegate to the configured hourly-weather callable."""
        return self.weather_hours(*args, **kwargs)

    def fetch_marine_hours(self, *args, **kwargs) -> List[MarineHour]:
        """Delegate to the configured hourly-marine callable."""
        return self.marine_hours(*args, **kwargs)


def fetch_marine_hours_or_empty(
    data_source: ForecastDataSource,
    spot: Spot,
    *,
    timezone: str = "auto",
    forecast_days: int = 7,
) -> List[MarineHour]:
    """Hourly waves for a spot, or no hours when the marine API fails."""
    try:
        return data_source.fetch_marine_hours(
            spot.lat, spot.lon, timezone=timezone, forecast_days=forecast_days
        )
    except MARINE_FETCH_ERRORS as exc:
        logger.warning(
            "Marine fetch failed; wave height unknown",
            extra={"spot": spot.name, "error": str(exc)},
        )
        return []


class DailyWeatherSource(Protocol):
    """Anything that can produce one averaged sample per spot and day."""

    def check_day(self, day: int) -> int:
        """Return ``day`` or raise ValueError if this source cannot serve it."""
        ...

    def daily_average(self, spot: Spot, day: int) -> WeatherSample:
        """Return the spot's mean conditions for the given day."""
        ...


class HourlyAverageWeatherSource(DailyWeatherSource):
    """Average a day of an hourly forecast into a single sample."""

    def __init__(
        self,
        data_source: ForecastDataSource,
        *,
        timezone: str = "auto",
        forecast_days: int = 7,
    ) -> None:
        self.data_source = data_source
        self.timezone = timezone
        self.forecast_days = forecast_days

    def check_day(self, day: int) -> int:
        return check_day_index(day, max_day=min(MAX_DAY_INDEX, self.forecast_days - 1))

    def daily_average(self, spot: Spot, day: int) -> WeatherSample:
        self.check_day(day)
        days = self.forecast_days
        weather = self.data_source.fetch_weather_hours(
            spot.lat, spot.lon, timezone=self.timezone, forecast_days=days
        )
        marine = fetch_marine_hours_or_empty(
            self.data_source, spot, timezone=self.timezone, forecast_days=days
        )
        return WeatherSample(
            temperature_2m=average_for_day([h.temperature for h in weather], day),
            wind_speed_10m=average_for_day([h.wind_speed for h in weather], day),
            precipitation=average_for_day([h.precipitation for h in weather], day),
            wave_height=average_for_day([h.wave_height for h in marine], day),
        )
