"""Helpers for fetching weather and marine wave data from the Open-Meteo APIs."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests_cache
from retry_requests import retry

from nautic.config import settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="open_meteo_client")

cache_session = requests_cache.CachedSession(".cache", expire_after=settings.http_cache_seconds)
session = retry(cache_session, retries=5, backoff_factor=0.2)

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"

WEATHER_VARS = ["temperature_2m", "wind_speed_10m", "precipitation"]

# Shown only in the spot detail view.
DETAIL_VARS = ["cloud_cover", "relative_humidity_2m", "pressure_msl", "visibility"]

EXPECTED_WEATHER_UNITS = {
    "temperature_2m": "°C",
    "wind_speed_10m": "m/s",
    "precipitation": "mm",
    "cloud_cover": "%",
    "relative_humidity_2m": "%",
    "pressure_msl": "hPa",
    "visibility": "m",
}

EXPECTED_MARINE_UNITS = {
    "wave_height": "m",
}

# Alternative spellings that should not trigger warnings.
ALLOWED_UNIT_SYNONYMS = {
    "temperature_2m": {"°C", "degC"},
    "wind_speed_10m": {"m/s", "ms", "m s-1"},
    "precipitation": {"mm"},
    "cloud_cover": {"%"},
    "relative_humidity_2m": {"%"},
    "pressure_msl": {"hPa"},
    "visibility": {"m", "meters"},
    "wave_height": {"m", "meters"},
}


@dataclass
class WeatherHour:
    """Normalized weather reading (current or one forecast hour)."""
    time: dt.datetime  # timezone-aware
    hour_index: int
    temperature: Optional[float]
    temperature_unit: Optional[str]
    wind_speed: Optional[float]
    wind_speed_unit: Optional[str]
    precipitation: Optional[float]
    precipitation_unit: Optional[str]
    cloud_cover: Optional[float] = None
    relative_humidity: Optional[float] = None
    pressure_msl: Optional[float] = None
    visibility: Optional[float] = None  # metres


@dataclass
class MarineHour:
    """Normalized hourly wave reading from the marine API."""
    time: dt.datetime  # timezone-aware
    hour_index: int
    wave_height: Optional[float]
    wave_height_unit: Optional[str]


def _response_timezone(data: dict, requested: str) -> str:
    """Resolve the timezone Open-Meteo used; ``auto`` is answered in the payload."""
    tz_name = data.get("timezone") if requested == "auto" else requested
    try:
        ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone in Open-Meteo response; using UTC", extra={"tz_name": tz_name})
        return "UTC"
    return tz_name or "UTC"


def _iso_to_dt_with_tz(s: str, tz_name: str) -> dt.datetime:
    """Interpret an Open-Meteo local time string as being in tz_name."""
    naive = dt.datetime.fromisoformat(s)
    return naive.replace(tzinfo=ZoneInfo(tz_name))


def _warn_on_unexpected_units(units: dict, expected_units: dict, *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, expected in expected_units.items():
        actual = units.get(field)
        if not actual or actual == expected:
            continue
        allowed = ALLOWED_UNIT_SYNONYMS.get(field, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected,
                       "allowed": sorted(allowed)},
            )


def _get(url: str, params: dict) -> dict:
    """GET an Open-Meteo endpoint and return the decoded JSON body."""
    resp = session.get(url, params=params, timeout=settings.request_timeout_seconds)
    resp.raise_for_status()
    return resp.json()


def fetch_weather_current(latitude: float,
                          longitude: float,
                          *,
                          timezone: str = "auto",
                          ) -> WeatherHour:
    """Fetch the latest weather observation for the given coordinates."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(WEATHER_VARS + DETAIL_VARS),
        "timezone": timezone,
        "wind_speed_unit": "ms",
    }
    data = _get(OPEN_METEO_WEATHER_URL, params)

    current = data["current"]
    current_units = data.get("current_units", {})
    _warn_on_unexpected_units(current_units, EXPECTED_WEATHER_UNITS, context="weather_current")
    tz_name = _response_timezone(data, timezone)

    return WeatherHour(
        time=_iso_to_dt_with_tz(current["time"], tz_name),
        hour_index=0,
        temperature=current.get("temperature_2m"),
        temperature_unit=current_units.get("temperature_2m"),
        wind_speed=current.get("wind_speed_10m"),
        wind_speed_unit=current_units.get("wind_speed_10m"),
        precipitation=current.get("precipitation"),
        precipitation_unit=current_units.get("precipitation"),
        cloud_cover=current.get("cloud_cover"),
        relative_humidity=current.get("relative_humidity_2m"),
        pressure_msl=current.get("pressure_msl"),
        visibility=current.get("visibility"),
    )


def fetch_weather_hours(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    forecast_days: int = 7,
) -> List[WeatherHour]:
    """Fetch ``forecast_days`` of hourly weather as structured objects."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(WEATHER_VARS + DETAIL_VARS),
        "forecast_days": forecast_days,
        "timezone": timezone,
        "wind_speed_unit": "ms",
    }
    data = _get(OPEN_METEO_WEATHER_URL, params)

    hourly = data["hourly"]
    hourly_units = data.get("hourly_units", {})
    _warn_on_unexpected_units(hourly_units, EXPECTED_WEATHER_UNITS, context="weather_hourly")
    tz_name = _response_timezone(data, timezone)

    times = hourly["time"]
    temp = hourly.get("temperature_2m", [None] * len(times))
    wind_speed = hourly.get("wind_speed_10m", [None] * len(times))
    precip = hourly.get("precipitation", [None] * len(times))
    clouds = hourly.get("cloud_cover", [None] * len(times))
    humidity = hourly.get("relative_humidity_2m", [None] * len(times))
    pressure = hourly.get("pressure_msl", [None] * len(times))
    visibility = hourly.get("visibility", [None] * len(times))

    out: List[WeatherHour] = []
    for i, t in enumerate(times):
        out.append(
            WeatherHour(
                time=_iso_to_dt_with_tz(t, tz_name),
                hour_index=i,
                temperature=temp[i],
                temperature_unit=hourly_units.get("temperature_2m"),
                wind_speed=wind_speed[i],
                wind_speed_unit=hourly_units.get("wind_speed_10m"),
                precipitation=precip[i],
                precipitation_unit=hourly_units.get("precipitation"),
                cloud_cover=clouds[i],
                relative_humidity=humidity[i],
                pressure_msl=pressure[i],
                visibility=visibility[i],
            )
        )
    return out


def fetch_marine_hours(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    forecast_days: int = 7,
) -> List[MarineHour]:
    """Fetch hourly wave height; points the marine model does not cover come back as None."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": "wave_height",
        "forecast_days": forecast_days,
        "timezone": timezone,
    }
    data = _get(OPEN_METEO_MARINE_URL, params)

    hourly = data["hourly"]
    hourly_units = data.get("hourly_units", {})
    _warn_on_unexpected_units(hourly_units, EXPECTED_MARINE_UNITS, context="marine_hourly")
    tz_name = _response_timezone(data, timezone)

    times = hourly["time"]
    waves = hourly.get("wave_height", [None] * len(times))
    return [
        MarineHour(
            time=_iso_to_dt_with_tz(t, tz_name),
            hour_index=i,
            wave_height=waves[i],
            wave_height_unit=hourly_units.get("wave_height"),
        )
        for i, t in enumerate(times)
    ]
