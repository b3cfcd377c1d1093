import math

import pytest

from nautic.domain import Activity, MarkerColor, NowVerdict, SuitabilityLabel, WeatherSample
from nautic.suitability import (
    evaluate_sample,
    evaluate_suitability,
    has_wind_data,
    marker_color,
    marker_color_for_sample,
    qualify_now,
)


@pytest.mark.parametrize(
    "wind, wave, rain",
    [(0.0, 1.2, 0.0), (7.9, 3.0, 1.9), (5.0, 1.5, None)],
)
def test_surf_excellent(wind, wave, rain):
    assert evaluate_suitability(Activity.SURF, wind, wave, rain) is SuitabilityLabel.EXCELLENT


def test_surf_good_and_poor():
    assert evaluate_suitability("surf", 10.0, 0.8, 3.0) is SuitabilityLabel.GOOD
    # strong wind spoils even a big swell
    assert evaluate_suitability("surf", 12.0, 2.0, 0.0) is SuitabilityLabel.POOR
    assert evaluate_suitability("surf", 3.0, 0.5, 0.0) is SuitabilityLabel.POOR
    assert evaluate_suitability("surf", 3.0, 1.5, 4.0) is SuitabilityLabel.POOR


@pytest.mark.parametrize("wind", [8.0, 11.0, 14.0])
def test_kite_excellent_band(wind):
    assert evaluate_suitability(Activity.KITE, wind, None, 1.0) is SuitabilityLabel.EXCELLENT


def test_kite_good_and_poor():
    assert evaluate_suitability("kite", 6.0, None, 0.0) is SuitabilityLabel.GOOD
    assert evaluate_suitability("kite", 20.0, None, 0.0) is SuitabilityLabel.GOOD
    assert evaluate_suitability("kite", 10.0, None, 3.0) is SuitabilityLabel.GOOD
    assert evaluate_suitability("kite", 5.9, None, 0.0) is SuitabilityLabel.POOR
    assert evaluate_suitability("kite", 10.0, None, 4.0) is SuitabilityLabel.POOR


def test_missing_inputs_count_as_zero():
    assert evaluate_suitability("kite", None, None, None) is SuitabilityLabel.POOR
    assert evaluate_suitability("surf", None, 1.3, None) is SuitabilityLabel.EXCELLENT


def test_nan_inputs_count_as_zero():
    assert evaluate_suitability("kite", 10.0, math.nan, math.nan) is SuitabilityLabel.EXCELLENT
    assert evaluate_suitability("surf", 5.0, 1.5, math.nan) is SuitabilityLabel.EXCELLENT
    assert evaluate_suitability("kite", math.nan, None, 0.0) is SuitabilityLabel.POOR


def test_unknown_activity_rejected():
    with pytest.raises(ValueError):
        evaluate_suitability("windsurf", 10.0, 1.0, 0.0)


def test_marker_colors():
    assert marker_color(SuitabilityLabel.EXCELLENT) is MarkerColor.GREEN
    assert marker_color(SuitabilityLabel.GOOD) is MarkerColor.AMBER
    assert marker_color(SuitabilityLabel.POOR) is MarkerColor.RED
    assert marker_color(None) is MarkerColor.GRAY


def test_sample_without_wind_is_gray():
    sample = WeatherSample(temperature_2m=18.0, wave_height=1.5, precipitation=0.0)
    assert not has_wind_data(sample)
    assert evaluate_sample(Activity.SURF, sample) is None
    assert marker_color_for_sample(Activity.SURF, sample) is MarkerColor.GRAY


def test_nan_wind_is_no_data():
    sample = WeatherSample(wind_speed_10m=math.nan, wave_height=1.5)
    assert sample.wind_speed_10m is None
    assert marker_color_for_sample(Activity.SURF, sample) is MarkerColor.GRAY


def test_sample_without_activity_is_gray():
    sample = WeatherSample(wind_speed_10m=10.0)
    assert marker_color_for_sample(None, sample) is MarkerColor.GRAY


def test_sample_with_wind_is_scored():
    sample = WeatherSample(wind_speed_10m=10.0, precipitation=0.5)
    assert marker_color_for_sample(Activity.KITE, sample) is MarkerColor.GREEN


@pytest.mark.parametrize(
    "wave, wind, expected",
    [
        (1.5, 4.0, NowVerdict.GOOD),
        (1.5, 9.0, NowVerdict.FAIR),
        (0.7, 2.0, NowVerdict.FAIR),
        (0.3, 2.0, NowVerdict.CALM),
        (None, None, NowVerdict.CALM),
    ],
)
def test_qualify_now(wave, wind, expected):
    assert qualify_now(WeatherSample(wave_height=wave, wind_speed_10m=wind)) is expected


def test_qualify_now_without_sample():
    assert qualify_now(None) is NowVerdict.CALM
