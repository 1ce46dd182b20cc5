import pytest

from routeplanner.services.routing.errors import DistanceUnavailableError
from routeplanner.services.routing.estimators import (
    CachedEstimator,
    FallbackEstimator,
    HaversineEstimator,
    MatrixEstimator,
)


def test_matrix_estimator_symmetric_lookup():
    estimator = MatrixEstimator({("A", "B"): 4.0}, {("A", "B"): 9})

    assert estimator.distance("B", "A") == 4.0
    assert estimator.travel_time("B", "A") == 9
    assert estimator.distance("A", "A") == 0


def test_matrix_estimator_defaults_travel_time_to_rounded_distance():
    estimator = MatrixEstimator({("A", "B"): 4.6})
    assert estimator.travel_time("A", "B") == 5


def test_matrix_estimator_missing_pair_raises():
    estimator = MatrixEstimator({("A", "B"): 1.0}, symmetric=False)
    with pytest.raises(DistanceUnavailableError):
        estimator.distance("B", "A")


def test_haversine_estimator_uses_miles_and_average_speed():
    estimator = HaversineEstimator({"X": (0.0, 0.0), "Y": (0.0, 1.0)}, average_speed_mph=30.0)

    assert estimator.distance("X", "Y") == pytest.approx(69.09, abs=0.05)
    assert estimator.distance("Y", "X") == pytest.approx(estimator.distance("X", "Y"))
    assert estimator.travel_time("X", "Y") == 138


def test_haversine_estimator_unknown_address():
    estimator = HaversineEstimator({"X": (0.0, 0.0)})
    with pytest.raises(DistanceUnavailableError):
        estimator.distance("X", "Nowhere")


class CountingEstimator:
    def __init__(self):
        self.calls = 0

    def distance(self, origin, destination):
        self.calls += 1
        return 1.0

    def travel_time(self, origin, destination):
        self.calls += 1
        return 2


def test_cached_estimator_memoizes_pairs():
    inner = CountingEstimator()
    cached = CachedEstimator(inner)

    for _ in range(3):
        cached.distance("A", "B")
        cached.travel_time("A", "B")

    assert inner.calls == 2


class FailingEstimator:
    def distance(self, origin, destination):
        raise DistanceUnavailableError("down")

    def travel_time(self, origin, destination):
        raise DistanceUnavailableError("down")


def test_fallback_estimator_switches_after_failure():
    secondary = MatrixEstimator({("A", "B"): 3.0})
    estimator = FallbackEstimator(FailingEstimator(), secondary)

    assert estimator.distance("A", "B") == 3.0
    assert estimator.fallback_used is True
    assert estimator.travel_time("A", "B") == 3


class PartialEstimator:
    def __init__(self, answers):
        self.answers = answers

    def distance(self, origin, destination):
        if self.answers <= 0:
            raise DistanceUnavailableError("down")
        self.answers -= 1
        return 100.0

    def travel_time(self, origin, destination):
        return int(self.distance(origin, destination))


def test_fallback_estimator_reports_mixed_answers():
    secondary = MatrixEstimator({("A", "B"): 3.0, ("B", "C"): 4.0})
    estimator = FallbackEstimator(PartialEstimator(answers=1), secondary)

    assert estimator.distance("A", "B") == 100.0
    assert estimator.mixed is False
    assert estimator.distance("B", "C") == 4.0
    assert estimator.fallback_used is True
    assert estimator.mixed is True
    assert estimator.primary_answers == 1


def test_fallback_estimator_failing_first_is_not_mixed():
    estimator = FallbackEstimator(FailingEstimator(), MatrixEstimator({("A", "B"): 3.0}))

    estimator.distance("A", "B")

    assert estimator.fallback_used is True
    assert estimator.mixed is False
