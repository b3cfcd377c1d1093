"""Build per-request map snapshots and spot forecasts from the weather sources."""
from __future__ import annotations

import datetime as dt
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Sequence

import requests
from sqlalchemy.exc import SQLAlchemyError

from nautic.averaging import HOURS_PER_DAY, hourly_stats
from nautic.data_sources.base import DailyWeatherSource, ForecastDataSource, fetch_marine_hours_or_empty
from nautic.domain import (
    Activity,
    CurrentConditions,
    MarkerSnapshot,
    Spot,
    SpotForecast,
    SpotMarker,
    WeatherSample,
)
from nautic.spots import filter_spots, pick_activity_for_spot
from nautic.suitability import evaluate_sample, marker_color, qualify_now
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_service")

# Failures that cost one spot its reading but never the whole batch.
FETCH_ERRORS = (requests.RequestException, SQLAlchemyError, LookupError, ValueError, TypeError)

DEFAULT_MAX_WORKERS = 8

# Open-Meteo has no gust field here; gusts are guessed from the mean wind.
GUST_FACTOR = 1.3


def fetch_spot_sample(source: DailyWeatherSource, spot: Spot, day: int) -> WeatherSample:
    """Daily sample for one spot; an empty sample if the fetch fails."""
    try:
        return source.daily_average(spot, day)
    except FETCH_ERRORS as exc:
        logger.warning(
            "Weather fetch failed; using empty reading",
            extra={"spot": spot.name, "day": day, "error": str(exc)},
        )
        return WeatherSample()


def fetch_samples(
    source: DailyWeatherSource,
    spots: Sequence[Spot],
    day: int,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[WeatherSample]:
    """Fetch every spot concurrently; samples come back in ``spots`` order.

    Each spot is its own task, so total latency is that of the slowest spot.
    """
    if not spots:
        return []

    samples: List[WeatherSample] = [WeatherSample()] * len(spots)
    workers = max(1, min(max_workers, len(spots)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spot-fetch") as executor:
        futures = {
            executor.submit(fetch_spot_sample, source, spot, day): idx for idx, spot in enumerate(spots)
        }
        for future in as_completed(futures):
            samples[futures[future]] = future.result()

    missing = sum(1 for s in samples if s.is_empty())
    logger.info(
        "Fetched spot samples",
        extra={"spots": len(spots), "empty": missing, "day": day},
    )
    return samples


def build_marker(spot: Spot, selected: Sequence[Activity], sample: WeatherSample) -> SpotMarker:
    """Score one spot for the chosen activity and color its marker."""
    activity = pick_activity_for_spot(selected, spot.sports)
    label = evaluate_sample(activity, sample)
    return SpotMarker(
        id=spot.id,
        name=spot.name,
        lat=spot.lat,
        lon=spot.lon,
        sports=spot.sports,
        activity=activity,
        label=label,
        color=marker_color(label),
        weather=sample,
    )


def build_marker_snapshot(
    spots: Sequence[Spot],
    source: DailyWeatherSource,
    *,
    selected: Sequence[Activity] = (),
    day: int = 0,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> MarkerSnapshot:
    """Filter spots, fetch their samples in parallel and return colored markers."""
    source.check_day(day)
    visible = filter_spots(spots, selected)
    logger.info(
        "Building marker snapshot",
        extra={"visible": len(visible), "selected": [a.value for a in selected], "day": day},
    )
    samples = fetch_samples(source, visible, day, max_workers=max_workers)
    markers = [build_marker(spot, selected, sample) for spot, sample in zip(visible, samples)]
    return MarkerSnapshot(
        day=day,
        generated_at=dt.datetime.now(dt.timezone.utc),
        sports=tuple(selected),
        markers=tuple(markers),
    )


def estimate_gust(wind_speed: float | None) -> float | None:
    """Rough gust speed from the mean wind; None when wind is unknown."""
    if wind_speed is None or math.isnan(wind_speed):
        return None
    return wind_speed * GUST_FACTOR


def get_spot_forecast(
    spot: Spot,
    data_source: ForecastDataSource,
    *,
    timezone: str = "auto",
) -> SpotForecast:
    """Current conditions plus min/avg/max over the next 24 forecast hours.

    Current wave height is the first marine forecast hour, as the marine API
    has no "current" block. A failed marine fetch only leaves waves unknown.
    """
    current = data_source.fetch_weather_current(spot.lat, spot.lon, timezone=timezone)
    weather_hours = data_source.fetch_weather_hours(spot.lat, spot.lon, timezone=timezone, forecast_days=1)
    marine_hours = fetch_marine_hours_or_empty(data_source, spot, timezone=timezone, forecast_days=1)
    logger.debug(
        "Fetched spot forecast",
        extra={"spot": spot.name, "weather_hours": len(weather_hours), "marine_hours": len(marine_hours)},
    )

    weather_hours = weather_hours[:HOURS_PER_DAY]
    marine_hours = marine_hours[:HOURS_PER_DAY]
    waves: List[float | None] = [h.wave_height for h in marine_hours]

    conditions = CurrentConditions(
        temperature_2m=current.temperature,
        wind_speed_10m=current.wind_speed,
        precipitation=current.precipitation,
        wave_height=waves[0] if waves else None,
        cloud_cover=current.cloud_cover,
        relative_humidity_2m=current.relative_humidity,
        pressure_msl=current.pressure_msl,
        visibility=current.visibility,
        wind_gust_estimate=estimate_gust(current.wind_speed),
    )
    return SpotForecast(
        spot=spot,
        current=conditions,
        verdict=qualify_now(conditions),
        stats={
            "wave_height": hourly_stats(waves),
            "wind_speed_10m": hourly_stats([h.wind_speed for h in weather_hours]),
            "temperature_2m": hourly_stats([h.temperature for h in weather_hours]),
        },
        hours=len(weather_hours),
    )
