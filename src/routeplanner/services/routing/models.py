"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ...models.domain import Stop


@dataclass(frozen=True, slots=True)
class StopSchedule:
    address: str
    arrival_min: int
    departure_min: int
    service_min: int
    window_violated: bool = False
    wait_min: int = 0


@dataclass(frozen=True, slots=True)
class Schedule:
    total_distance: float
    total_elapsed_min: int
    stops: List[StopSchedule]


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    """Outcome of one 2-opt search; ``converged`` is False when a budget cut it short."""

    ordered_stops: List[Stop]
    total_distance: float
    passes: int
    converged: bool


@dataclass(frozen=True, slots=True)
class OptimizedRoute:
    """Ordered stops plus their projected timing for one planning request."""

    start: str
    start_min: int
    ordered_stops: List[Stop]
    total_distance: float
    total_elapsed_min: int
    schedule: List[StopSchedule]
    converged: bool = True
    passes: int = 0

    @property
    def has_conflicts(self) -> bool:
        return any(entry.window_violated for entry in self.schedule)

    @property
    def stop_count(self) -> int:
        return len(self.ordered_stops)
