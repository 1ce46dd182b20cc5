"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import Mapping, Sequence

import httpx

from ...config import settings
from ..geospatial import meters_to_miles
from .errors import DistanceUnavailableError

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def _get_json(self, url: str, params: dict) -> dict:
        """GET ``url`` with retries; timeouts and network errors back off exponentially."""
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    if data.get("code", "Ok") != "Ok":
                        raise ValueError(f"OSRM request failed: {data.get('message', data.get('code'))}")
                    return data
                except httpx.HTTPStatusError as e:
                    if e.response.status_code == 414:
                        raise ValueError("OSRM request URL too large; too many stops for one table request.") from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM request timed out after {self.max_retries} attempts: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM request timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
                except (httpx.HTTPError, ValueError):
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
        finally:
            client.close()

    def table(self, coordinates: Sequence[tuple[float, float]]) -> dict:
        """Get the full distance/duration matrix for ``(lat, lon)`` coordinates."""
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM table.")

        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        url = f"{self.base_url}/table/v1/{self.profile}/{coordinate_str}"
        data = self._get_json(url, {"annotations": "duration,distance"})
        if "durations" not in data or "distances" not in data:
            raise ValueError("OSRM response missing durations/distances.")
        return data


class OSRMEstimator:
    """Road distances (miles) and drive times (minutes) from one OSRM table request.

    The matrix is fetched lazily on first use and reused for the rest of the
    planning session. A failed fetch is remembered so the optimizer loop does
    not hammer the service.
    """

    def __init__(self, coordinates: Mapping[str, tuple[float, float]], client: OSRMClient | None = None) -> None:
        self.addresses = list(coordinates)
        self.coordinates = dict(coordinates)
        self.client = client or OSRMClient()
        self._index = {address: idx for idx, address in enumerate(self.addresses)}
        self._distances: list[list[float]] | None = None
        self._durations: list[list[float]] | None = None
        self._error: DistanceUnavailableError | None = None

    def _load(self) -> None:
        if self._distances is not None:
            return
        if self._error is not None:
            raise self._error
        try:
            data = self.client.table([self.coordinates[address] for address in self.addresses])
            distances, durations = data["distances"], data["durations"]
            if any(value is None for row in distances + durations for value in row):
                raise ValueError("OSRM could not find a road path between some stops.")
        except (httpx.HTTPError, ConnectionError, ValueError, KeyError) as exc:
            self._error = DistanceUnavailableError(f"Road distances unavailable: {exc}")
            raise self._error from exc
        logger.info(f"Loaded OSRM matrix for {len(self.addresses)} locations")
        self._distances = distances
        self._durations = durations

    def _indices(self, origin: str, destination: str) -> tuple[int, int]:
        try:
            return self._index[origin], self._index[destination]
        except KeyError as exc:
            raise DistanceUnavailableError(
                f"No coordinates known for {exc.args[0]!r}.", origin=origin, destination=destination
            ) from exc

    def distance(self, origin: str, destination: str) -> float:
        if origin == destination:
            return 0.0
        i, j = self._indices(origin, destination)
        self._load()
        return meters_to_miles(self._distances[i][j])

    def travel_time(self, origin: str, destination: str) -> int:
        if origin == destination:
            return 0
        i, j = self._indices(origin, destination)
        self._load()
        return int(round(self._durations[i][j] / 60.0))


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a simple table request.

    Public OSRM endpoints may not have a /health endpoint, so we test
    connectivity by making a minimal table request with two coordinates.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/table/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"annotations": "duration"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return "durations" in data and isinstance(data.get("durations"), list)
    except (httpx.HTTPError, ValueError):
        return False
