"""HTTP API for spots, weather averages and weather-variable writes."""

import hmac
from typing import List, Optional

import redis
import requests
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from nautic.config import settings
from nautic.data_sources import DailyWeatherSource, ForecastDataSource, PostgresSpotRepository
from nautic.dependencies import (
    get_forecast_data_source,
    get_repository,
    get_spot_registry,
    get_weather_source,
)
from nautic.domain import (
    HealthResponse,
    MarkerSnapshot,
    Spot,
    SpotForecast,
    VariableMeteorologica,
    VariableMeteorologicaCreate,
    WeatherSample,
    activities_from_strings,
)
from nautic.forecast_service import build_marker_snapshot, get_spot_forecast
from nautic.spots import SpotRegistry, find_spot_by_name
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="nautic/api")

_redis_client = None
if settings.api_key_redis_url:
    _redis_client = redis.Redis.from_url(settings.api_key_redis_url)
    logger.info("API key checks will use Redis backend", extra={"redis_set": settings.api_key_redis_set})


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate X-API-Key against Redis (if configured) or the static api_key setting.

    With neither configured, writes are open (local development).
    """
    if not settings.api_key and not _redis_client:
        logger.debug("No API key configured; allowing request")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if _redis_client:
        try:
            if _redis_client.sismember(settings.api_key_redis_set, x_api_key):
                return
        except redis.RedisError as e:
            logger.warning("Redis API key lookup error; falling back to static key",
                           extra={"error": str(e)})

    if settings.api_key and hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def _parse_int(raw: Optional[str], name: str, *, default: Optional[int] = None) -> int:
    """Parse an integer query parameter or answer 400."""
    if raw is None or raw.strip() == "":
        if default is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} is required")
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} must be an integer")


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health():
    """Liveness probe."""
    return HealthResponse(ok=True)


@router.get("/spots", response_model=List[Spot])
def list_spots(registry: SpotRegistry = Depends(get_spot_registry)):
    """List spots with their supported activities."""
    try:
        return registry.list_spots()
    except SQLAlchemyError:
        logger.exception("Failed to list spots")
        raise HTTPException(status_code=500, detail="Error listing spots")


@router.get("/spots/weather_average_mon", response_model=WeatherSample)
def weather_average(
    spot_id: Optional[str] = Query(default=None, alias="spotId"),
    day: Optional[str] = Query(default=None),
    repository: PostgresSpotRepository = Depends(get_repository),
):
    """Average each stored weather variable for a spot on today + ``day``."""
    parsed_spot = _parse_int(spot_id, "spotId")
    parsed_day = _parse_int(day, "day", default=0)
    try:
        return repository.average_for_spot_day(parsed_spot, parsed_day)
    except SQLAlchemyError:
        logger.exception("Failed to compute weather averages", extra={"spot_id": parsed_spot, "day": parsed_day})
        raise HTTPException(status_code=500, detail="Error computing averages")


@router.get("/spots/markers", response_model=MarkerSnapshot)
def spot_markers(
    sports: List[str] = Query(default=[]),
    day: int = Query(default=0),
    registry: SpotRegistry = Depends(get_spot_registry),
    source: DailyWeatherSource = Depends(get_weather_source),
):
    """Colored markers for the visible spots on the requested forecast day."""
    try:
        selected = activities_from_strings(sports)
        source.check_day(day)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        spots = registry.list_spots()
    except SQLAlchemyError:
        logger.exception("Failed to list spots")
        raise HTTPException(status_code=500, detail="Error listing spots")

    return build_marker_snapshot(
        spots,
        source,
        selected=selected,
        day=day,
        max_workers=settings.fetch_max_workers,
    )


@router.get("/spots/{name}/forecast", response_model=SpotForecast)
def spot_forecast(
    name: str,
    registry: SpotRegistry = Depends(get_spot_registry),
    data_source: ForecastDataSource = Depends(get_forecast_data_source),
):
    """Current conditions and 24-hour statistics for one spot."""
    try:
        spot = find_spot_by_name(registry.list_spots(), name)
    except SQLAlchemyError:
        logger.exception("Failed to list spots")
        raise HTTPException(status_code=500, detail="Error listing spots")
    if spot is None:
        raise HTTPException(status_code=404, detail="Unknown spot")
    try:
        return get_spot_forecast(spot, data_source, timezone=settings.timezone)
    except requests.RequestException as e:
        logger.warning("Forecast provider failed", extra={"spot": spot.name, "error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Forecast provider unavailable")


@router.post(
    "/variables",
    response_model=VariableMeteorologica,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
def create_variable(
    payload: VariableMeteorologicaCreate,
    repository: PostgresSpotRepository = Depends(get_repository),
):
    """Store one weather-variable observation."""
    try:
        return repository.insert_variable(payload)
    except SQLAlchemyError:
        logger.exception("Failed to insert weather variable", extra={"spot": payload.spot, "nombre": payload.nombre})
        raise HTTPException(status_code=500, detail="Error inserting variable")
