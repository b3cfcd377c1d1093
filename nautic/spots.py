"""Spot registry and activity filtering."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, Sequence

from nautic.domain import Activity, Spot

SURF = Activity.SURF
KITE = Activity.KITE

# Argentine Atlantic coast, north to south. Ids match the rows written by
# `python -m nautic.seed`.
COASTAL_SPOTS: tuple[Spot, ...] = (
    Spot(id=1, name="San Clemente del Tuyú", lat=-36.3567, lon=-56.7233, sports=(KITE,)),
    Spot(id=2, name="Santa Teresita", lat=-36.5417, lon=-56.7083, sports=(SURF, KITE)),
    Spot(id=3, name="San Bernardo", lat=-36.7000, lon=-56.7000, sports=(KITE,)),
    Spot(id=4, name="Mar de Ajó", lat=-36.7167, lon=-56.6833, sports=(SURF, KITE)),
    Spot(id=5, name="Mar de las Pampas", lat=-37.3167, lon=-57.0167, sports=(SURF, KITE)),
    Spot(id=6, name="Cariló", lat=-37.1833, lon=-56.9000, sports=(SURF, KITE)),
    Spot(id=7, name="Pinamar", lat=-37.1094, lon=-56.8567, sports=(SURF, KITE)),
    Spot(id=8, name="Villa Gesell", lat=-37.2645, lon=-56.9729, sports=(SURF, KITE)),
    Spot(id=9, name="Mar del Plata", lat=-38.0055, lon=-57.5426, sports=(SURF, KITE)),
    Spot(id=10, name="Miramar", lat=-38.2667, lon=-57.8333, sports=(SURF,)),
    Spot(id=11, name="Necochea", lat=-38.5545, lon=-58.7390, sports=(SURF,)),
    Spot(id=12, name="Claromecó", lat=-38.8667, lon=-60.0833, sports=(SURF,)),
    Spot(id=13, name="Monte Hermoso", lat=-38.9833, lon=-61.2833, sports=(SURF,)),
)


class SpotRegistry(Protocol):
    """Anything that can list the known spots."""

    def list_spots(self) -> List[Spot]:
        """Return all spots, ordered for display."""
        ...


class StaticSpotRegistry(SpotRegistry):
    """Registry backed by a fixed tuple of spots."""

    def __init__(self, spots: Sequence[Spot] = COASTAL_SPOTS) -> None:
        self._spots = tuple(spots)

    def list_spots(self) -> List[Spot]:
        return list(self._spots)


def filter_spots(spots: Sequence[Spot], selected: Iterable[Activity | str] | None) -> List[Spot]:
    """Spots supporting any selected activity; no selection keeps them all."""
    wanted = {Activity(s) for s in (selected or [])}
    if not wanted:
        return list(spots)
    return [spot for spot in spots if wanted.intersection(spot.sports)]


def pick_activity_for_spot(
    selected: Sequence[Activity | str] | None,
    spot_activities: Sequence[Activity | str],
) -> Optional[Activity]:
    """Choose the single activity a spot is scored against.

    A sole selected activity wins if the spot supports it; otherwise the first
    selected activity the spot supports; otherwise the spot's first activity.
    """
    chosen = [Activity(s) for s in (selected or [])]
    supported = [Activity(s) for s in spot_activities]
    if not supported:
        return None

    if len(chosen) == 1 and chosen[0] in supported:
        return chosen[0]
    for activity in chosen:
        if activity in supported:
            return activity
    return supported[0]


def find_spot_by_name(spots: Iterable[Spot], name: str) -> Optional[Spot]:
    """Case-insensitive lookup by display name."""
    wanted = name.strip().lower()
    for spot in spots:
        if spot.name.lower() == wanted:
            return spot
    return None
