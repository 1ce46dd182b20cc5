"""Presentation and export of optimized routes."""

from __future__ import annotations

import csv
import io
from typing import Optional
from urllib.parse import quote

from ..routing.clock import format_clock, format_duration, format_hours_minutes
from ..routing.models import OptimizedRoute

GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"
WAZE_URL = "https://waze.com/ul"
DISTANCE_UNIT = "miles"

STATUS_OK = "ok"
STATUS_CONFLICTS = "Route has scheduling conflicts"


def route_status(route: OptimizedRoute) -> str:
    return STATUS_CONFLICTS if route.has_conflicts else STATUS_OK


def route_summary(route: OptimizedRoute) -> dict:
    return {
        "stop_count": route.stop_count,
        "total_distance": round(route.total_distance, 1),
        "distance_unit": DISTANCE_UNIT,
        "total_time": route.total_elapsed_min,
        "total_time_label": format_hours_minutes(route.total_elapsed_min),
    }


def eta_table(route: OptimizedRoute) -> list[dict]:
    """One row per stop in visiting order, times formatted as ``HH:MM``."""
    rows = []
    for sequence, (stop, entry) in enumerate(zip(route.ordered_stops, route.schedule), start=1):
        window = stop.time_window
        rows.append(
            {
                "sequence": sequence,
                "address": entry.address,
                "arrival_time": format_clock(entry.arrival_min),
                "departure_time": format_clock(entry.departure_min),
                "service_time": entry.service_min,
                "wait_minutes": entry.wait_min,
                "time_window": (
                    {"start": format_clock(window.start), "end": format_clock(window.end)} if window else None
                ),
                "window_violated": entry.window_violated,
            }
        )
    return rows


def google_maps_url(route: OptimizedRoute) -> str:
    addresses = [route.start, *(stop.address for stop in route.ordered_stops)]
    return GOOGLE_MAPS_DIRECTIONS_URL + "/".join(quote(address, safe="") for address in addresses)


def waze_url(route: OptimizedRoute) -> Optional[str]:
    """Waze handles a single destination, so only the first stop is linked."""
    if not route.ordered_stops:
        return None
    return f"{WAZE_URL}?q={quote(route.ordered_stops[0].address, safe='')}"


def route_to_text(route: OptimizedRoute) -> str:
    lines = [
        f"Optimized Route (Starting at {format_clock(route.start_min)})",
        "=" * 40,
        f"Starting Point: {route.start}",
        "",
    ]
    for row in eta_table(route):
        lines.append(f"{row['sequence']}. {row['address']}")
        lines.append(f"   Arrival: {row['arrival_time']}")
        lines.append(f"   Service: {row['service_time']} min")
        lines.append(f"   Departure: {row['departure_time']}")
        window = row["time_window"]
        if window:
            flag = " (VIOLATION)" if row["window_violated"] else ""
            lines.append(f"   Window: {window['start']} - {window['end']}{flag}")
        lines.append("")
    lines.append(f"Total Distance: {route.total_distance:.1f} {DISTANCE_UNIT}")
    lines.append(f"Total Time: {format_duration(route.total_elapsed_min)}")
    if route.has_conflicts:
        lines.append(f"Warning: {STATUS_CONFLICTS}")
    return "\n".join(lines)


def route_to_csv(route: OptimizedRoute) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "address",
        "arrival_time",
        "departure_time",
        "service_time",
        "wait_minutes",
        "window_start",
        "window_end",
        "window_violated",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for row in eta_table(route):
        window = row.pop("time_window") or {}
        writer.writerow(
            {
                **row,
                "window_start": window.get("start", ""),
                "window_end": window.get("end", ""),
            }
        )
    return buffer.getvalue()


def route_to_json(route: OptimizedRoute) -> dict:
    return {
        "starting_point": route.start,
        "start_time": format_clock(route.start_min),
        "status": route_status(route),
        "summary": route_summary(route),
        "estimated_times": eta_table(route),
        "links": {"google_maps": google_maps_url(route), "waze": waze_url(route)},
        "search": {"passes": route.passes, "converged": route.converged},
    }
