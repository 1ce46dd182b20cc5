"""2-opt route optimization with schedule projection."""

from .errors import DistanceUnavailableError, RouteOptimizationError
from .schedule import project_schedule
from .solver import SolverBudget, optimize, two_opt

__all__ = [
    "DistanceUnavailableError",
    "RouteOptimizationError",
    "SolverBudget",
    "optimize",
    "project_schedule",
    "two_opt",
]
