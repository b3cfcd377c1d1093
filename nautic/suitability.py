"""Deterministic suitability rules for surf and kite.

Inputs are window means: wind speed in m/s, wave height in m, precipitation
in mm. The thresholds are fixed business rules, not a fitted model.
"""

from __future__ import annotations

import math

from nautic.domain import Activity, MarkerColor, NowVerdict, SuitabilityLabel, WeatherSample

SURF_EXCELLENT_MIN_WAVE_M = 1.2
SURF_EXCELLENT_MAX_WIND_MS = 8.0
SURF_GOOD_MIN_WAVE_M = 0.7
SURF_GOOD_MAX_WIND_MS = 12.0

KITE_EXCELLENT_MIN_WIND_MS = 8.0
KITE_EXCELLENT_MAX_WIND_MS = 14.0
KITE_GOOD_MIN_WIND_MS = 6.0

EXCELLENT_MAX_RAIN_MM = 2.0
GOOD_MAX_RAIN_MM = 4.0

_LABEL_COLORS = {
    SuitabilityLabel.EXCELLENT: MarkerColor.GREEN,
    SuitabilityLabel.GOOD: MarkerColor.AMBER,
    SuitabilityLabel.POOR: MarkerColor.RED,
}


def _or_zero(value: float | None) -> float:
    """Missing (None or NaN) inputs count as zero."""
    if value is None or math.isnan(value):
        return 0.0
    return value


def _judge_surf(wind: float, wave: float, rain: float) -> SuitabilityLabel:
    if wave >= SURF_EXCELLENT_MIN_WAVE_M and wind < SURF_EXCELLENT_MAX_WIND_MS and rain < EXCELLENT_MAX_RAIN_MM:
        return SuitabilityLabel.EXCELLENT
    if wave >= SURF_GOOD_MIN_WAVE_M and wind < SURF_GOOD_MAX_WIND_MS and rain < GOOD_MAX_RAIN_MM:
        return SuitabilityLabel.GOOD
    return SuitabilityLabel.POOR


def _judge_kite(wind: float, rain: float) -> SuitabilityLabel:
    if KITE_EXCELLENT_MIN_WIND_MS <= wind <= KITE_EXCELLENT_MAX_WIND_MS and rain < EXCELLENT_MAX_RAIN_MM:
        return SuitabilityLabel.EXCELLENT
    if wind >= KITE_GOOD_MIN_WIND_MS and rain < GOOD_MAX_RAIN_MM:
        return SuitabilityLabel.GOOD
    return SuitabilityLabel.POOR


def evaluate_suitability(
    activity: Activity | str,
    wind_speed: float | None,
    wave_height: float | None,
    precipitation: float | None,
) -> SuitabilityLabel:
    """Score one activity from mean wind, wave height and rain."""
    activity = Activity(activity)
    wind = _or_zero(wind_speed)
    wave = _or_zero(wave_height)
    rain = _or_zero(precipitation)

    if activity is Activity.SURF:
        return _judge_surf(wind, wave, rain)
    if activity is Activity.KITE:
        return _judge_kite(wind, rain)
    raise ValueError(f"No suitability rules for activity '{activity}'")


def marker_color(label: SuitabilityLabel | None) -> MarkerColor:
    """Map a label to its marker color; no label means no data."""
    if label is None:
        return MarkerColor.GRAY
    return _LABEL_COLORS[SuitabilityLabel(label)]


def has_wind_data(sample: WeatherSample | None) -> bool:
    """Wind is the one input the map refuses to default."""
    if sample is None or sample.wind_speed_10m is None:
        return False
    return not math.isnan(sample.wind_speed_10m)


def evaluate_sample(activity: Activity | str | None, sample: WeatherSample | None) -> SuitabilityLabel | None:
    """Label a sample, or None when there is no activity or no wind reading."""
    if activity is None or not has_wind_data(sample):
        return None
    return evaluate_suitability(
        activity,
        wind_speed=sample.wind_speed_10m,
        wave_height=sample.wave_height,
        precipitation=sample.precipitation,
    )


def marker_color_for_sample(activity: Activity | str | None, sample: WeatherSample | None) -> MarkerColor:
    """Marker color for a sample; gray when wind is missing or NaN."""
    return marker_color(evaluate_sample(activity, sample))


def qualify_now(sample: WeatherSample | None) -> NowVerdict:
    """Surf-oriented verdict on current waves and wind, ignoring rain."""
    wave = _or_zero(sample.wave_height if sample else None)
    wind = _or_zero(sample.wind_speed_10m if sample else None)
    if wave >= SURF_EXCELLENT_MIN_WAVE_M and wind < SURF_EXCELLENT_MAX_WIND_MS:
        return NowVerdict.GOOD
    if wave >= SURF_GOOD_MIN_WAVE_M:
        return NowVerdict.FAIR
    return NowVerdict.CALM
