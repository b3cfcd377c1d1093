"""Postgres-backed spot registry, daily averages and observation writes.

Reads the `spot` / `deporte_spot` / `deporte` tables for the spot list and the
generic `variable_meteorologica` key-value table for weather. Observation
names come from several providers, so each canonical variable is matched
against a list of lower-cased synonyms (e.g. "Temperatura", "temp").
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import bindparam, create_engine, select, text
from sqlalchemy.engine import Engine

from nautic.data_sources.base import DailyWeatherSource
from nautic.data_sources.schema import (
    create_schema,
    deporte_spot_table,
    deporte_table,
    spot_table,
    variable_meteorologica_table,
)
from nautic.domain import (
    Activity,
    Spot,
    VariableMeteorologica,
    VariableMeteorologicaCreate,
    WeatherSample,
)
from nautic.spots import SpotRegistry
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="postgres_data_source")

VARIABLE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "temperature_2m": ("temperature_2m", "temperatura", "temp"),
    "wind_speed_10m": ("wind_speed_10m", "viento", "wind"),
    "precipitation": ("precipitation", "lluvia"),
    "wave_height": ("wave_height", "olas", "oleaje"),
}

SPOTS_QUERY = text(
    """
    SELECT s.id_spot    AS id,
           s.nombre     AS name,
           s.coord_lat  AS lat,
           s.coord_lng  AS lon,
           LOWER(d.nombre) AS sport
      FROM spot s
      LEFT JOIN deporte_spot ds ON ds.id_spot = s.id_spot
      LEFT JOIN deporte d       ON d.id_deporte = ds.id_deporte
     ORDER BY s.nombre, s.id_spot, d.id_deporte
    """
)

DAILY_AVERAGE_QUERY = text(
    """
    WITH sel AS (
        SELECT nombre, valor
          FROM variable_meteorologica
         WHERE spot = :spot_id
           AND date(fecha) = :day
    )
    SELECT AVG(CASE WHEN LOWER(nombre) IN :temperature_names THEN valor END) AS temperature_2m,
           AVG(CASE WHEN LOWER(nombre) IN :wind_names        THEN valor END) AS wind_speed_10m,
           AVG(CASE WHEN LOWER(nombre) IN :precipitation_names THEN valor END) AS precipitation,
           AVG(CASE WHEN LOWER(nombre) IN :wave_names        THEN valor END) AS wave_height
      FROM sel
    """
).bindparams(
    bindparam("temperature_names", expanding=True),
    bindparam("wind_names", expanding=True),
    bindparam("precipitation_names", expanding=True),
    bindparam("wave_names", expanding=True),
)


class PostgresSpotRepository(SpotRegistry, DailyWeatherSource):
    """Spots and averaged weather from Postgres instead of Open-Meteo."""

    DEFAULT_TIMEZONE = "UTC"

    def __init__(self, engine: Engine, *, timezone: str = DEFAULT_TIMEZONE) -> None:
        """Bind to a database engine; ``timezone`` decides what "today" is."""
        self.engine = engine
        self.timezone = self._normalize_timezone(timezone)

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "PostgresSpotRepository":
        """Create an engine from a URL and build the repository."""
        engine_kwargs = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            # local dev file; requests are served from a threadpool
            engine_kwargs = {"future": True, "connect_args": {"check_same_thread": False}}
        engine = create_engine(database_url, **engine_kwargs)
        return cls(engine, **kwargs)

    @classmethod
    def _normalize_timezone(cls, tz_name: str | None) -> str:
        """Return a valid timezone name, falling back to UTC."""
        if not tz_name or tz_name == "auto":
            return cls.DEFAULT_TIMEZONE
        try:
            ZoneInfo(tz_name)
            return tz_name
        except Exception:
            logger.warning("Invalid timezone; falling back to UTC", extra={"tz_name": tz_name})
            return cls.DEFAULT_TIMEZONE

    @staticmethod
    def _to_float(value) -> float | None:
        """AVG over NUMERIC yields Decimal on Postgres."""
        if value is None:
            return None
        return float(value)

    def today(self) -> dt.date:
        """Current date in the repository's timezone."""
        return dt.datetime.now(ZoneInfo(self.timezone)).date()

    def create_schema(self) -> None:
        """Create missing tables (used by the seed command and tests)."""
        create_schema(self.engine)

    def list_spots(self) -> List[Spot]:
        """Return spots with their lower-cased activities, ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(SPOTS_QUERY).mappings().all()

        grouped: Dict[int, dict] = {}
        for row in rows:
            entry = grouped.setdefault(
                row["id"],
                {"id": row["id"], "name": row["name"], "lat": row["lat"], "lon": row["lon"], "sports": []},
            )
            sport = row["sport"]
            if sport is None:
                continue
            try:
                activity = Activity(sport)
            except ValueError:
                logger.debug("Skipping unsupported sport", extra={"spot_id": row["id"], "sport": sport})
                continue
            if activity not in entry["sports"]:
                entry["sports"].append(activity)

        return [
            Spot(id=e["id"], name=e["name"], lat=float(e["lat"]), lon=float(e["lon"]), sports=tuple(e["sports"]))
            for e in grouped.values()
        ]

    def check_day(self, day: int) -> int:
        """Any integer offset from today is a valid query."""
        if isinstance(day, bool) or not isinstance(day, int):
            raise ValueError(f"day must be an integer, got {day!r}")
        return day

    def average_for_spot_day(self, spot_id: int, day: int = 0, *, today: dt.date | None = None) -> WeatherSample:
        """Mean of each canonical variable for a spot on ``today + day``."""
        self.check_day(day)
        target = (today or self.today()) + dt.timedelta(days=day)
        params = {
            "spot_id": spot_id,
            "day": target.isoformat(),
            "temperature_names": list(VARIABLE_SYNONYMS["temperature_2m"]),
            "wind_names": list(VARIABLE_SYNONYMS["wind_speed_10m"]),
            "precipitation_names": list(VARIABLE_SYNONYMS["precipitation"]),
            "wave_names": list(VARIABLE_SYNONYMS["wave_height"]),
        }
        logger.debug("Averaging weather variables", extra={"spot_id": spot_id, "day": target.isoformat()})
        with self.engine.connect() as conn:
            row = conn.execute(DAILY_AVERAGE_QUERY, params).mappings().first()
        if not row:
            return WeatherSample()
        return WeatherSample(**{name: self._to_float(row[name]) for name in VARIABLE_SYNONYMS})

    def daily_average(self, spot: Spot, day: int) -> WeatherSample:
        """DailyWeatherSource hook: averages keyed by the spot's database id."""
        if spot.id is None:
            raise LookupError(f"Spot '{spot.name}' has no database id")
        return self.average_for_spot_day(spot.id, day)

    def insert_variable(self, payload: VariableMeteorologicaCreate) -> VariableMeteorologica:
        """Insert one observation and return the stored row."""
        values = payload.model_dump()
        if values.get("id_variable") is None:
            values.pop("id_variable", None)
        stmt = (
            variable_meteorologica_table.insert()
            .values(**values)
            .returning(*variable_meteorologica_table.c)
        )
        with self.engine.begin() as conn:
            row = conn.execute(stmt).mappings().one()
        logger.info(
            "Stored weather variable",
            extra={"id_variable": row["id_variable"], "spot": row["spot"], "nombre": row["nombre"]},
        )
        return VariableMeteorologica(**dict(row))

    def seed_spots(self, spots: Iterable[Spot]) -> int:
        """Insert spots (and their activities) that are not in the database yet."""
        inserted = 0
        activity_ids = {activity: idx for idx, activity in enumerate(Activity, start=1)}
        with self.engine.begin() as conn:
            existing_sports = {r[0] for r in conn.execute(select(deporte_table.c.id_deporte))}
            for activity, id_deporte in activity_ids.items():
                if id_deporte not in existing_sports:
                    conn.execute(deporte_table.insert().values(id_deporte=id_deporte, nombre=activity.value))

            existing_spots = {r[0] for r in conn.execute(select(spot_table.c.id_spot))}
            for spot in spots:
                if spot.id is None or spot.id in existing_spots:
                    continue
                conn.execute(
                    spot_table.insert().values(
                        id_spot=spot.id, nombre=spot.name, coord_lat=spot.lat, coord_lng=spot.lon
                    )
                )
                for activity in spot.sports:
                    conn.execute(
                        deporte_spot_table.insert().values(id_spot=spot.id, id_deporte=activity_ids[activity])
                    )
                inserted += 1
        logger.info("Seeded spots", extra={"inserted": inserted})
        return inserted

