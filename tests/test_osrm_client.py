import httpx
import pytest

from routeplanner.services.routing.errors import DistanceUnavailableError
from routeplanner.services.routing.geocoder import NominatimGeocoder
from routeplanner.services.routing.osrm_client import OSRMClient, OSRMEstimator


def _mock_client(handler):
    return lambda self: httpx.Client(transport=httpx.MockTransport(handler))


TABLE = {
    "code": "Ok",
    "durations": [[0, 600], [660, 0]],
    "distances": [[0, 1609.344], [1700, 0]],
}


def test_table_retries_then_succeeds(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=TABLE)

    monkeypatch.setattr(OSRMClient, "_get_client", _mock_client(handler))
    client = OSRMClient(base_url="http://osrm.test/", max_retries=2, backoff_seconds=0)

    data = client.table([(40.0, -75.0), (40.1, -75.1)])

    assert data["durations"] == TABLE["durations"]
    assert len(calls) == 2
    assert calls[-1].url.path == "/table/v1/driving/-75.0,40.0;-75.1,40.1"


def test_estimator_fetches_matrix_once(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=TABLE)

    monkeypatch.setattr(OSRMClient, "_get_client", _mock_client(handler))
    client = OSRMClient(base_url="http://osrm.test", max_retries=0, backoff_seconds=0)
    estimator = OSRMEstimator({"Depot": (40.0, -75.0), "Arcade": (40.1, -75.1)}, client)

    assert estimator.distance("Depot", "Arcade") == pytest.approx(1.0)
    assert estimator.travel_time("Depot", "Arcade") == 10
    assert estimator.travel_time("Arcade", "Depot") == 11
    assert len(calls) == 1


def test_estimator_remembers_failures(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    monkeypatch.setattr(OSRMClient, "_get_client", _mock_client(handler))
    client = OSRMClient(base_url="http://osrm.test", max_retries=1, backoff_seconds=0)
    estimator = OSRMEstimator({"Depot": (40.0, -75.0), "Arcade": (40.1, -75.1)}, client)

    for _ in range(3):
        with pytest.raises(DistanceUnavailableError):
            estimator.distance("Depot", "Arcade")
    assert len(calls) == 2


def test_unreachable_pairs_are_unavailable(monkeypatch: pytest.MonkeyPatch):
    table = {"code": "Ok", "durations": [[0, None], [None, 0]], "distances": [[0, None], [None, 0]]}
    monkeypatch.setattr(OSRMClient, "_get_client", _mock_client(lambda request: httpx.Response(200, json=table)))
    client = OSRMClient(base_url="http://osrm.test", max_retries=0, backoff_seconds=0)
    estimator = OSRMEstimator({"Depot": (40.0, -75.0), "Island": (41.0, -70.0)}, client)

    with pytest.raises(DistanceUnavailableError):
        estimator.travel_time("Depot", "Island")


def test_geocoder_resolves_and_memoizes(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        assert request.url.params["q"] == "1 Arcade Way"
        return httpx.Response(200, json=[{"lat": "40.5", "lon": "-74.25"}])

    monkeypatch.setattr(NominatimGeocoder, "_get_client", _mock_client(handler))
    geocoder = NominatimGeocoder(base_url="http://geocoder.test", max_retries=0, backoff_seconds=0)

    assert geocoder.geocode("1 Arcade Way") == (40.5, -74.25)
    assert geocoder.geocode_all(["1 Arcade Way", "1 Arcade Way"]) == {"1 Arcade Way": (40.5, -74.25)}
    assert len(calls) == 1


def test_geocoder_unknown_address(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(NominatimGeocoder, "_get_client", _mock_client(lambda request: httpx.Response(200, json=[])))
    geocoder = NominatimGeocoder(base_url="http://geocoder.test", max_retries=0, backoff_seconds=0)

    with pytest.raises(DistanceUnavailableError):
        geocoder.geocode("Nowhere")
