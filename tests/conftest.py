import pytest

from routeplanner.models.domain import Stop, TimeWindow
from routeplanner.services.routing.estimators import MatrixEstimator


@pytest.fixture
def warehouse_estimator() -> MatrixEstimator:
    return MatrixEstimator(
        {
            ("Warehouse", "A"): 10,
            ("A", "B"): 10,
            ("Warehouse", "B"): 5,
        }
    )


@pytest.fixture
def warehouse_stops() -> list[Stop]:
    return [
        Stop(address="A", service_min=15),
        Stop(address="B", service_min=20, time_window=TimeWindow(start=540, end=570)),
    ]


def line_estimator(positions: dict[str, float]) -> MatrixEstimator:
    """Locations on a straight line; distance is the gap between positions."""
    names = list(positions)
    return MatrixEstimator(
        {
            (a, b): abs(positions[a] - positions[b])
            for i, a in enumerate(names)
            for b in names[i + 1 :]
        }
    )
