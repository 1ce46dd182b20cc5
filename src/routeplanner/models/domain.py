"""Domain models for stops on a service route."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Acceptable arrival interval, in minutes since midnight."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Time window start ({self.start}) is after its end ({self.end}).")


@dataclass(frozen=True, slots=True)
class Stop:
    """A location to visit, with the minutes spent servicing machines there."""

    address: str
    service_min: int = 0
    time_window: Optional[TimeWindow] = None
    coordinates: Optional[tuple[float, float]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.address or not self.address.strip():
            raise ValueError("Stop address must not be empty.")
        if self.service_min < 0:
            raise ValueError(f"Service time for {self.address!r} must be non-negative.")
