"""Failure kinds raised while optimizing a route."""


class RouteOptimizationError(Exception):
    """Base class for hard failures that abort an optimization run."""


class DistanceUnavailableError(RouteOptimizationError):
    """Raised when an estimator cannot price a pair of locations."""

    def __init__(self, message: str, *, origin: str | None = None, destination: str | None = None) -> None:
        super().__init__(message)
        self.origin = origin
        self.destination = destination
