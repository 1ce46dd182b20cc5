from routeplanner.models.domain import Stop, TimeWindow
from routeplanner.services.routing.clock import parse_clock
from routeplanner.services.routing.estimators import MatrixEstimator
from routeplanner.services.routing.schedule import project_schedule


def test_late_arrival_is_flagged_without_shifting_time():
    estimator = MatrixEstimator({("Warehouse", "X"): 20}, {("Warehouse", "X"): 60})
    stop = Stop(address="X", service_min=10, time_window=TimeWindow(start=parse_clock("09:00"), end=parse_clock("09:30")))

    schedule = project_schedule("Warehouse", [stop], parse_clock("09:00"), estimator)

    entry = schedule.stops[0]
    assert entry.window_violated is True
    assert entry.arrival_min == parse_clock("10:00")
    assert entry.departure_min == parse_clock("10:10")
    assert schedule.total_elapsed_min == 70
    assert schedule.total_distance == 20


def test_early_arrival_waits_for_window():
    estimator = MatrixEstimator({("Warehouse", "X"): 10})
    stop = Stop(address="X", service_min=30, time_window=TimeWindow(start=parse_clock("09:00"), end=parse_clock("17:00")))

    schedule = project_schedule("Warehouse", [stop], parse_clock("07:50"), estimator)

    entry = schedule.stops[0]
    assert entry.arrival_min == parse_clock("09:00")
    assert entry.wait_min == 60
    assert entry.window_violated is False
    assert entry.departure_min == parse_clock("09:30")
    assert schedule.total_elapsed_min == 100


def test_input_order_violates_window_downstream(warehouse_estimator, warehouse_stops):
    schedule = project_schedule("Warehouse", warehouse_stops, parse_clock("09:00"), warehouse_estimator)

    a, b = schedule.stops
    assert (a.arrival_min, a.departure_min, a.window_violated) == (550, 565, False)
    assert (b.arrival_min, b.departure_min, b.window_violated) == (575, 595, True)
    assert schedule.total_distance == 20
    assert schedule.total_elapsed_min == 95


def test_schedule_entries_are_consistent():
    estimator = MatrixEstimator(
        {("S", "A"): 5, ("S", "B"): 8, ("S", "C"): 3, ("A", "B"): 4, ("A", "C"): 6, ("B", "C"): 2}
    )
    stops = [
        Stop(address="A", service_min=15),
        Stop(address="B", service_min=0, time_window=TimeWindow(start=600, end=660)),
        Stop(address="C", service_min=45),
    ]

    schedule = project_schedule("S", stops, 540, estimator)

    assert len(schedule.stops) == len(stops)
    for entry, stop in zip(schedule.stops, stops):
        assert entry.departure_min == entry.arrival_min + stop.service_min
    for previous, following in zip(schedule.stops, schedule.stops[1:]):
        assert following.arrival_min >= previous.departure_min
    assert schedule.total_elapsed_min == schedule.stops[-1].departure_min - 540


def test_empty_route_has_no_elapsed_time():
    schedule = project_schedule("S", [], 540, MatrixEstimator({}))
    assert schedule.stops == []
    assert schedule.total_elapsed_min == 0
    assert schedule.total_distance == 0
