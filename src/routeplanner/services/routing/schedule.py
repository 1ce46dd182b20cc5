"""Projection of arrival and departure times along an ordered route."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Stop
from .estimators import DistanceEstimator
from .models import Schedule, StopSchedule


def project_schedule(
    start: str,
    ordered_stops: Sequence[Stop],
    start_min: int,
    estimator: DistanceEstimator,
) -> Schedule:
    """Walk ``ordered_stops`` from ``start`` at ``start_min`` (minutes since midnight).

    Arriving before a time window opens waits for it; arriving after it closes
    flags the stop as violated and later stops are scheduled from the late
    arrival.
    """
    current_time = start_min
    current_location = start
    total_distance = 0.0
    entries: list[StopSchedule] = []

    for stop in ordered_stops:
        total_distance += estimator.distance(current_location, stop.address)
        current_time += estimator.travel_time(current_location, stop.address)

        wait = 0
        violated = False
        window = stop.time_window
        if window is not None:
            if current_time < window.start:
                wait = window.start - current_time
                current_time = window.start
            elif current_time > window.end:
                violated = True

        departure = current_time + stop.service_min
        entries.append(
            StopSchedule(
                address=stop.address,
                arrival_min=current_time,
                departure_min=departure,
                service_min=stop.service_min,
                window_violated=violated,
                wait_min=wait,
            )
        )
        current_time = departure
        current_location = stop.address

    return Schedule(
        total_distance=total_distance,
        total_elapsed_min=current_time - start_min,
        stops=entries,
    )
