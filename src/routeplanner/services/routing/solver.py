"""2-opt local search over the visiting order of a single service route.

The route is an open path: it leaves the start location, visits every stop
once and does not return. The start is pinned to position 0; every other
position can move through segment reversals.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from ...models.domain import Stop
from .estimators import DistanceEstimator
from .models import OptimizationResult

logger = logging.getLogger(__name__)

# Reversals must beat the current cost by more than this to be accepted.
IMPROVEMENT_TOLERANCE = 1e-9


@dataclass(slots=True)
class SolverBudget:
    """Limits on a search. ``should_stop`` is polled as a cancellation token."""

    max_passes: int | None = None
    time_limit_seconds: float | None = None
    should_stop: Callable[[], bool] | None = None


def _build_matrix(locations: Sequence[str], estimator: DistanceEstimator) -> list[list[float]]:
    """Price every ordered pair once; index 0 is the start, index k is stop k."""
    size = len(locations)
    matrix = [[0.0] * size for _ in range(size)]
    for i, origin in enumerate(locations):
        for j, destination in enumerate(locations):
            if i == j:
                continue
            value = float(estimator.distance(origin, destination))
            if value < 0:
                raise ValueError(f"Estimator returned a negative distance from {origin!r} to {destination!r}.")
            matrix[i][j] = value
    return matrix


def _is_symmetric(matrix: list[list[float]]) -> bool:
    size = len(matrix)
    return all(
        abs(matrix[i][j] - matrix[j][i]) <= IMPROVEMENT_TOLERANCE
        for i in range(size)
        for j in range(i + 1, size)
    )


def _path_cost(tour: Sequence[int], matrix: list[list[float]]) -> float:
    return sum(matrix[tour[k]][tour[k + 1]] for k in range(len(tour) - 1))


def _reversal_delta(tour: list[int], i: int, j: int, matrix: list[list[float]]) -> float:
    """Cost change of reversing ``tour[i..j]`` on a symmetric matrix.

    Only the edge entering the segment and, unless the segment runs to the end
    of the path, the edge leaving it change.
    """
    a, b, c = tour[i - 1], tour[i], tour[j]
    delta = matrix[a][c] - matrix[a][b]
    if j + 1 < len(tour):
        d = tour[j + 1]
        delta += matrix[b][d] - matrix[c][d]
    return delta


def two_opt(
    start: str,
    stops: Sequence[Stop],
    estimator: DistanceEstimator,
    budget: SolverBudget | None = None,
) -> OptimizationResult:
    """Improve the input order by first-improvement 2-opt until a pass finds nothing.

    Candidate reversals are scanned with the segment start ascending, then the
    segment end ascending; an accepted reversal is applied immediately and the
    scan continues on the new order. The seed is the input order, so the result
    is never longer than it. When the budget runs out the best order so far is
    returned with ``converged=False``.
    """
    budget = budget or SolverBudget()
    stops = list(stops)

    if not stops:
        return OptimizationResult(ordered_stops=[], total_distance=0.0, passes=0, converged=True)
    if len(stops) == 1:
        distance = float(estimator.distance(start, stops[0].address))
        return OptimizationResult(ordered_stops=stops, total_distance=distance, passes=0, converged=True)

    locations = [start, *(stop.address for stop in stops)]
    matrix = _build_matrix(locations, estimator)
    symmetric = _is_symmetric(matrix)

    tour = list(range(len(locations)))
    cost = _path_cost(tour, matrix)
    initial_cost = cost
    deadline = time.monotonic() + budget.time_limit_seconds if budget.time_limit_seconds else None

    def interrupted() -> bool:
        if deadline is not None and time.monotonic() >= deadline:
            return True
        return bool(budget.should_stop and budget.should_stop())

    passes = 0
    converged = False
    while not converged:
        if budget.max_passes is not None and passes >= budget.max_passes:
            break
        if interrupted():
            break
        passes += 1
        improved = False
        stopped = False
        for i in range(1, len(tour) - 1):
            if interrupted():
                stopped = True
                break
            for j in range(i + 1, len(tour)):
                if symmetric:
                    delta = _reversal_delta(tour, i, j, matrix)
                else:
                    candidate = tour[:i] + tour[i : j + 1][::-1] + tour[j + 1 :]
                    delta = _path_cost(candidate, matrix) - cost
                if delta < -IMPROVEMENT_TOLERANCE:
                    tour[i : j + 1] = tour[i : j + 1][::-1]
                    cost += delta
                    improved = True
        if stopped:
            break
        if not improved:
            converged = True

    total_distance = _path_cost(tour, matrix)
    if converged:
        logger.info(
            f"2-opt converged for {len(stops)} stops after {passes} passes "
            f"({initial_cost:.2f} -> {total_distance:.2f})"
        )
    else:
        logger.warning(
            f"2-opt search for {len(stops)} stops stopped by budget after {passes} passes; "
            f"returning best order found ({initial_cost:.2f} -> {total_distance:.2f})"
        )

    return OptimizationResult(
        ordered_stops=[stops[index - 1] for index in tour[1:]],
        total_distance=total_distance,
        passes=passes,
        converged=converged,
    )


def optimize(start: str, stops: Sequence[Stop], estimator: DistanceEstimator) -> list[Stop]:
    """Return ``stops`` in a locally shortest visiting order from ``start``."""
    return two_opt(start, stops, estimator).ordered_stops
