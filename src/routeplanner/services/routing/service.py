"""Route planning orchestration service."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Stop, TimeWindow
from ...persistence.filesystem import FileStorage
from ...schemas.routing import (
    EstimatedTimeModel,
    RouteLinksModel,
    RouteRequest,
    RouteResponse,
    RouteSummaryModel,
    StopModel,
)
from ..outputs.routing_formatter import (
    eta_table,
    google_maps_url,
    route_status,
    route_summary,
    route_to_csv,
    route_to_json,
    route_to_text,
    waze_url,
)
from .clock import parse_clock
from .errors import DistanceUnavailableError
from .estimators import CachedEstimator, DistanceEstimator, FallbackEstimator, HaversineEstimator
from .geocoder import NominatimGeocoder
from .models import OptimizedRoute
from .osrm_client import OSRMClient, OSRMEstimator
from .schedule import project_schedule
from .solver import SolverBudget, two_opt

logger = logging.getLogger(__name__)


def plan_route(
    start: str,
    stops: Sequence[Stop],
    start_min: int,
    estimator: DistanceEstimator,
    budget: SolverBudget | None = None,
) -> OptimizedRoute:
    """Order ``stops`` with 2-opt, then project the schedule along that order."""
    result = two_opt(start, stops, estimator, budget)
    schedule = project_schedule(start, result.ordered_stops, start_min, estimator)
    return OptimizedRoute(
        start=start,
        start_min=start_min,
        ordered_stops=result.ordered_stops,
        total_distance=schedule.total_distance,
        total_elapsed_min=schedule.total_elapsed_min,
        schedule=schedule.stops,
        converged=result.converged,
        passes=result.passes,
    )


def _to_stops(payload: RouteRequest) -> tuple[str, list[Stop], dict[int, StopModel]]:
    """Convert request stops to domain stops; ``sources`` maps id(stop) to its submitted model."""
    start = payload.starting_point.strip()
    if not start:
        raise ValueError("Please enter a starting point address.")

    stops: list[Stop] = []
    sources: dict[int, StopModel] = {}
    for stop in payload.stops:
        address = stop.address.strip()
        if not address:
            continue
        window = None
        if stop.time_window:
            window = TimeWindow(start=parse_clock(stop.time_window.start), end=parse_clock(stop.time_window.end))
        coordinates = (stop.coordinates.lat, stop.coordinates.lng) if stop.coordinates else None
        domain_stop = Stop(address=address, service_min=stop.service_time, time_window=window, coordinates=coordinates)
        stops.append(domain_stop)
        sources[id(domain_stop)] = stop

    skipped = len(payload.stops) - len(stops)
    if skipped:
        logger.info(f"Ignoring {skipped} stops with blank addresses")
    if not stops:
        raise ValueError("Please enter at least 1 destination address.")
    return start, stops, sources


def _collect_coordinates(payload: RouteRequest, start: str, stops: Sequence[Stop]) -> tuple[dict, list[str]]:
    known: dict[str, tuple[float, float]] = {}
    if payload.starting_coordinates:
        known[start] = (payload.starting_coordinates.lat, payload.starting_coordinates.lng)
    for stop in stops:
        if stop.coordinates is None:
            continue
        if stop.address in known and known[stop.address] != stop.coordinates:
            logger.warning(f"Conflicting coordinates for {stop.address!r}; keeping the first ones")
            continue
        known[stop.address] = stop.coordinates
    missing = [address for address in dict.fromkeys([start, *(stop.address for stop in stops)]) if address not in known]
    return known, missing


def build_estimator(payload: RouteRequest, start: str, stops: Sequence[Stop]) -> DistanceEstimator:
    """Pick the estimator for one planning request.

    Addresses without coordinates are geocoded when a geocoder is configured.
    Road distances come from OSRM when configured and requested, falling back
    to straight-line distances if enabled.
    """
    known, missing = _collect_coordinates(payload, start, stops)
    if missing:
        if not settings.geocoder_base_url:
            raise DistanceUnavailableError(
                f"No coordinates for {', '.join(repr(address) for address in missing)} and no geocoder is configured."
            )
        logger.info(f"Geocoding {len(missing)} addresses")
        known.update(NominatimGeocoder().geocode_all(missing))

    straight_line = HaversineEstimator(known, average_speed_mph=settings.average_speed_mph)
    if not (payload.use_road_network and settings.osrm_base_url):
        return straight_line

    road = OSRMEstimator(known, OSRMClient())
    if settings.distance_fallback_enabled:
        return FallbackEstimator(road, straight_line)
    return road


def _distance_source(estimator: DistanceEstimator) -> str:
    if isinstance(estimator, FallbackEstimator):
        return "haversine_fallback" if estimator.fallback_used else "osrm"
    if isinstance(estimator, OSRMEstimator):
        return "osrm"
    return "haversine"


def _build_budget(payload: RouteRequest) -> SolverBudget:
    return SolverBudget(
        max_passes=payload.max_passes if payload.max_passes is not None else settings.optimizer_max_passes,
        time_limit_seconds=(
            payload.time_limit_seconds
            if payload.time_limit_seconds is not None
            else settings.optimizer_time_limit_seconds
        ),
    )


def plan_from_request(
    payload: RouteRequest,
    estimator: DistanceEstimator | None = None,
) -> tuple[OptimizedRoute, dict]:
    """Validate a request, optimize it and return the route with run metadata."""
    start, stops, _ = _to_stops(payload)
    return _plan(payload, start, stops, estimator)


def _plan(
    payload: RouteRequest,
    start: str,
    stops: list[Stop],
    estimator: DistanceEstimator | None = None,
) -> tuple[OptimizedRoute, dict]:
    start_min = parse_clock(payload.start_time)
    estimator = estimator or build_estimator(payload, start, stops)

    logger.info(f"Optimizing route from {start!r} with {len(stops)} stops starting at {payload.start_time}")
    route = plan_route(start, stops, start_min, CachedEstimator(estimator), _build_budget(payload))
    if isinstance(estimator, FallbackEstimator) and estimator.mixed:
        logger.warning("Road distances failed mid-run; re-pricing the route with the fallback estimator only")
        route = plan_route(start, stops, start_min, CachedEstimator(estimator.secondary), _build_budget(payload))

    metadata = {
        "algorithm": "2-opt",
        "passes": route.passes,
        "converged": route.converged,
        "distance_source": _distance_source(estimator),
        "distance_unit": "miles",
    }
    if payload.run_label:
        metadata["run_label"] = payload.run_label
    if route.has_conflicts:
        violated = [entry.address for entry in route.schedule if entry.window_violated]
        logger.info(f"Route has {len(violated)} time window conflicts")
        metadata["window_violations"] = violated
    return route, metadata


def _persist_outputs(payload: RouteRequest, route: OptimizedRoute, metadata: dict) -> None:
    storage = FileStorage()
    prefix = f"route_{payload.run_label}" if payload.run_label else "route"
    run_dir = storage.make_run_directory(prefix=prefix)
    storage.write_json(run_dir / "summary.json", {**route_to_json(route), "metadata": metadata})
    storage.write_csv(run_dir / "itinerary.csv", route_to_csv(route))
    storage.write_text(run_dir / "itinerary.txt", route_to_text(route))
    metadata["output_path"] = str(run_dir)
    logger.info(f"Persisted route outputs to {run_dir}")


def _stop_model(stop: Stop, source: StopModel) -> StopModel:
    return source.model_copy(update={"address": stop.address})


def optimize_route(payload: RouteRequest) -> RouteResponse:
    start, stops, sources = _to_stops(payload)
    route, metadata = _plan(payload, start, stops)

    if payload.persist:
        _persist_outputs(payload, route, metadata)

    return RouteResponse(
        starting_point=route.start,
        start_time=payload.start_time,
        # The solver returns the same Stop objects, so each visit maps back to its own submission.
        stops=[_stop_model(stop, sources[id(stop)]) for stop in route.ordered_stops],
        total_distance=route.total_distance,
        total_time=route.total_elapsed_min,
        estimated_times=[EstimatedTimeModel(**row) for row in eta_table(route)],
        summary=RouteSummaryModel(**route_summary(route)),
        links=RouteLinksModel(google_maps=google_maps_url(route), waze=waze_url(route)),
        has_conflicts=route.has_conflicts,
        status=route_status(route),
        metadata=metadata,
    )


def export_route(payload: RouteRequest, fmt: str = "text") -> str:
    route, _ = plan_from_request(payload)
    if fmt == "csv":
        return route_to_csv(route)
    if fmt == "text":
        return route_to_text(route)
    raise ValueError(f"Unsupported export format {fmt!r}.")
