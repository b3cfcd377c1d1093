"""Domain vocabulary and schemas for spot suitability.

Enums for activities, labels and marker colors, plus the Pydantic models that
travel between the data sources, the evaluator and the HTTP layer. No
evaluation logic lives here.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _FrozenModel(BaseModel):
    """Immutable snapshot model."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Activity(str, Enum):
    """Water sports a spot can be scored for."""
    SURF = "surf"
    KITE = "kite"


class SuitabilityLabel(str, Enum):
    """Three-level suitability score for an activity."""
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"


class NowVerdict(str, Enum):
    """Quick read of the sea right now, shown on the detail view."""
    GOOD = "good"
    FAIR = "fair"
    CALM = "calm"


class MarkerColor(str, Enum):
    """Map marker colors; gray means no usable data."""
    GREEN = "green"
    AMBER = "amber"
    RED = "red"
    GRAY = "gray"


class Spot(_FrozenModel):
    """A named coastal location and the activities it supports."""
    id: int | None = None
    name: str
    lat: float
    lon: float
    sports: Tuple[Activity, ...] = ()


class WeatherSample(_FrozenModel):
    """Per-spot reading, averaged over a day or taken from current conditions.

    Units: temperature in degC, wind in m/s, precipitation in mm, waves in m.
    NaN (an unresolvable average) is stored as None so it serializes as null.
    """
    temperature_2m: float | None = None
    wind_speed_10m: float | None = None
    precipitation: float | None = None
    wave_height: float | None = None

    @field_validator("*", mode="after")
    @classmethod
    def nan_to_none(cls, v):
        if isinstance(v, float) and math.isnan(v):
            return None
        return v

    def is_empty(self) -> bool:
        """True when no field carries a value."""
        return all(getattr(self, name) is None for name in type(self).model_fields)


class CurrentConditions(WeatherSample):
    """Current reading for the detail view, with the extra weather details.

    Cloud cover and humidity in %, pressure in hPa, visibility in m. The gust
    figure is estimated from the mean wind, not measured.
    """
    cloud_cover: float | None = None
    relative_humidity_2m: float | None = None
    pressure_msl: float | None = None
    visibility: float | None = None
    wind_gust_estimate: float | None = None


class SpotMarker(_FrozenModel):
    """Everything a map needs to draw one spot."""
    id: int | None = None
    name: str
    lat: float
    lon: float
    sports: Tuple[Activity, ...] = ()
    activity: Activity | None = None
    label: SuitabilityLabel | None = None
    color: MarkerColor
    weather: WeatherSample


class MarkerSnapshot(_FrozenModel):
    """Markers for one request: filter, day and generation time."""
    day: int
    generated_at: datetime
    sports: Tuple[Activity, ...] = ()
    markers: Tuple[SpotMarker, ...] = ()


class HourlyStats(_FrozenModel):
    """Min/avg/max of an hourly series; None when the series is empty."""
    min: float | None = None
    avg: float | None = None
    max: float | None = None

    @field_validator("*", mode="after")
    @classmethod
    def nan_to_none(cls, v):
        if isinstance(v, float) and math.isnan(v):
            return None
        return v


class SpotForecast(_FrozenModel):
    """Detail view: current conditions plus 24-hour statistics."""
    spot: Spot
    current: CurrentConditions
    verdict: NowVerdict | None = None
    stats: Dict[str, HourlyStats] = Field(default_factory=dict)
    hours: int = 0


class VariableMeteorologicaCreate(BaseModel):
    """Incoming generic weather observation (one variable, one instant)."""

    model_config = ConfigDict(extra="ignore")

    id_variable: int | None = None
    id_proveedor: int | None = None
    spot: int
    nombre: str
    fecha: datetime
    tipo_dato: str | None = None
    range_min: float | None = None
    range_max: float | None = None
    valor: float
    unidad_base: str | None = None
    ultima_actualizacion: datetime | None = None


class VariableMeteorologica(VariableMeteorologicaCreate):
    """Persisted observation; ``id_variable`` is always set."""
    id_variable: int


class HealthResponse(_StrictBaseModel):
    """Liveness probe payload."""
    ok: bool = True


def activities_from_strings(values: List[str] | Tuple[str, ...]) -> Tuple[Activity, ...]:
    """Lower-case, validate and de-duplicate activity names, keeping order."""
    out: List[Activity] = []
    for value in values:
        activity = Activity(str(value).strip().lower())
        if activity not in out:
            out.append(activity)
    return tuple(out)
