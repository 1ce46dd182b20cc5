"""Route planning request/response schemas.

JSON bodies use camelCase keys (``startingPoint``, ``serviceTime``...) for the
planner UI; snake_case field names are accepted as well.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..config import settings
from ..services.routing.clock import format_clock, parse_clock


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinatesModel(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class TimeWindowModel(CamelModel):
    start: str = Field(..., description="Earliest arrival, HH:MM.")
    end: str = Field(..., description="Latest arrival, HH:MM.")

    @field_validator("start", "end")
    @classmethod
    def _normalize_clock(cls, value: str) -> str:
        return format_clock(parse_clock(value))

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindowModel":
        if parse_clock(self.start) > parse_clock(self.end):
            raise ValueError(f"Time window start {self.start} is after end {self.end}.")
        return self


class StopModel(CamelModel):
    address: str
    service_time: int = Field(
        default=settings.default_service_minutes,
        ge=0,
        le=settings.max_service_minutes,
        description="Minutes spent at the stop.",
    )
    time_window: Optional[TimeWindowModel] = None
    coordinates: Optional[CoordinatesModel] = None


class RouteRequest(CamelModel):
    starting_point: str = Field(..., description="Address the route starts from.")
    start_time: str = Field(default=settings.default_start_time, description="Departure time, HH:MM.")
    stops: List[StopModel] = Field(default_factory=list)
    starting_coordinates: Optional[CoordinatesModel] = None
    use_road_network: bool = Field(
        default=True,
        description="Use OSRM road distances when the service is configured.",
    )
    max_passes: Optional[int] = Field(default=None, ge=1, description="Cap on 2-opt improvement passes.")
    time_limit_seconds: Optional[float] = Field(default=None, gt=0, description="Wall-clock budget for the search.")
    persist: bool = Field(default=False, description="Whether to persist outputs to files.")
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")

    @field_validator("start_time")
    @classmethod
    def _normalize_start_time(cls, value: str) -> str:
        return format_clock(parse_clock(value))


class EstimatedTimeModel(CamelModel):
    sequence: int
    address: str
    arrival_time: str
    departure_time: str
    service_time: int
    wait_minutes: int = 0
    time_window: Optional[TimeWindowModel] = None
    window_violated: bool = False


class RouteSummaryModel(CamelModel):
    stop_count: int
    total_distance: float
    distance_unit: str = "miles"
    total_time: int
    total_time_label: str


class RouteLinksModel(CamelModel):
    google_maps: Optional[str] = None
    waze: Optional[str] = None


class RouteResponse(CamelModel):
    starting_point: str
    start_time: str
    stops: List[StopModel]
    total_distance: float
    total_time: int
    estimated_times: List[EstimatedTimeModel]
    summary: RouteSummaryModel
    links: RouteLinksModel
    has_conflicts: bool
    status: str
    metadata: dict
