"""Distance and travel-time estimators used by the route optimizer.

Every estimator answers two questions about a pair of locations (address
strings): how far apart they are, and how many whole minutes it takes to drive
between them. Answers must be deterministic for a fixed pair so the 2-opt
search converges.
"""

from __future__ import annotations

import logging
from typing import Mapping, Protocol

from ..geospatial import haversine_miles
from .errors import DistanceUnavailableError

logger = logging.getLogger(__name__)


class DistanceEstimator(Protocol):
    def distance(self, origin: str, destination: str) -> float:
        ...

    def travel_time(self, origin: str, destination: str) -> int:
        ...


class MatrixEstimator:
    """Fixed lookup table of pairwise distances and (optionally) travel minutes.

    With ``symmetric=True`` a pair missing in one direction is looked up in the
    other. Travel time defaults to the rounded distance when no time table is
    supplied.
    """

    def __init__(
        self,
        distances: Mapping[tuple[str, str], float],
        travel_times: Mapping[tuple[str, str], int] | None = None,
        *,
        symmetric: bool = True,
    ) -> None:
        self.distances = dict(distances)
        self.travel_times = dict(travel_times) if travel_times is not None else None
        self.symmetric = symmetric

    def _lookup(self, table: Mapping[tuple[str, str], float], origin: str, destination: str) -> float:
        if origin == destination:
            return 0
        if (origin, destination) in table:
            return table[(origin, destination)]
        if self.symmetric and (destination, origin) in table:
            return table[(destination, origin)]
        raise DistanceUnavailableError(
            f"No distance known between {origin!r} and {destination!r}.",
            origin=origin,
            destination=destination,
        )

    def distance(self, origin: str, destination: str) -> float:
        return float(self._lookup(self.distances, origin, destination))

    def travel_time(self, origin: str, destination: str) -> int:
        if self.travel_times is None:
            return int(round(self.distance(origin, destination)))
        return int(self._lookup(self.travel_times, origin, destination))


class HaversineEstimator:
    """Straight-line miles between known coordinates, driven at a constant speed."""

    def __init__(self, coordinates: Mapping[str, tuple[float, float]], average_speed_mph: float = 30.0) -> None:
        if average_speed_mph <= 0:
            raise ValueError("Average speed must be positive.")
        self.coordinates = dict(coordinates)
        self.average_speed_mph = average_speed_mph

    def _coords(self, address: str) -> tuple[float, float]:
        try:
            return self.coordinates[address]
        except KeyError as exc:
            raise DistanceUnavailableError(f"No coordinates known for {address!r}.", origin=address) from exc

    def distance(self, origin: str, destination: str) -> float:
        if origin == destination:
            return 0.0
        lat1, lon1 = self._coords(origin)
        lat2, lon2 = self._coords(destination)
        return haversine_miles(lat1, lon1, lat2, lon2)

    def travel_time(self, origin: str, destination: str) -> int:
        return int(round(self.distance(origin, destination) / self.average_speed_mph * 60))


class CachedEstimator:
    """Memoizes another estimator for the lifetime of one planning session."""

    def __init__(self, inner: DistanceEstimator) -> None:
        self.inner = inner
        self._distances: dict[tuple[str, str], float] = {}
        self._times: dict[tuple[str, str], int] = {}

    def distance(self, origin: str, destination: str) -> float:
        key = (origin, destination)
        if key not in self._distances:
            self._distances[key] = self.inner.distance(origin, destination)
        return self._distances[key]

    def travel_time(self, origin: str, destination: str) -> int:
        key = (origin, destination)
        if key not in self._times:
            self._times[key] = self.inner.travel_time(origin, destination)
        return self._times[key]


class FallbackEstimator:
    """Answers from ``primary`` and switches to ``secondary`` once it fails.

    After the first ``DistanceUnavailableError`` every later pair is priced by
    the secondary estimator. Answers the primary gave before it failed are
    already in the caller's hands; ``mixed`` reports that case so the caller
    can re-price the run with ``secondary`` alone.
    """

    def __init__(self, primary: DistanceEstimator, secondary: DistanceEstimator) -> None:
        self.primary = primary
        self.secondary = secondary
        self.fallback_used = False
        self.primary_answers = 0

    @property
    def mixed(self) -> bool:
        return self.fallback_used and self.primary_answers > 0

    def _switch(self, exc: DistanceUnavailableError) -> None:
        logger.warning(f"Primary distance estimator failed, using fallback estimator: {exc}")
        self.fallback_used = True

    def distance(self, origin: str, destination: str) -> float:
        if not self.fallback_used:
            try:
                value = self.primary.distance(origin, destination)
                self.primary_answers += 1
                return value
            except DistanceUnavailableError as exc:
                self._switch(exc)
        return self.secondary.distance(origin, destination)

    def travel_time(self, origin: str, destination: str) -> int:
        if not self.fallback_used:
            try:
                value = self.primary.travel_time(origin, destination)
                self.primary_answers += 1
                return value
            except DistanceUnavailableError as exc:
                self._switch(exc)
        return self.secondary.travel_time(origin, destination)
