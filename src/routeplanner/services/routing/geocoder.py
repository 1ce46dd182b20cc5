"""Address geocoding against a Nominatim-compatible search endpoint."""

from __future__ import annotations

import logging
import time
from typing import Iterable

import httpx

from ...config import settings
from .errors import DistanceUnavailableError

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Resolves free-form addresses to ``(lat, lon)``; results are memoized per instance.

    Requests are issued serially, with linear backoff on rate limiting
    (HTTP 429) and transport errors.
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = base_url or settings.geocoder_base_url
        if not self.base_url:
            raise ValueError("Geocoder base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._cache: dict[str, tuple[float, float]] = {}

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, headers={"User-Agent": self.user_agent})

    def geocode(self, address: str) -> tuple[float, float]:
        if address in self._cache:
            return self._cache[address]

        params = {"q": address, "format": "json", "limit": 1}
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(f"{self.base_url}/search", params=params)
                    response.raise_for_status()
                    results = response.json()
                    break
                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if e.response.status_code != 429 or attempt > self.max_retries:
                        raise DistanceUnavailableError(f"Geocoding failed for {address!r}: {e}", origin=address) from e
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.HTTPError, ValueError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise DistanceUnavailableError(f"Geocoding failed for {address!r}: {e}", origin=address) from e
                    logger.debug(f"Geocoder error, retrying (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(self.backoff_seconds * attempt)
        finally:
            client.close()

        if not results:
            raise DistanceUnavailableError(f"Address not found: {address!r}", origin=address)
        try:
            coords = (float(results[0]["lat"]), float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise DistanceUnavailableError(f"Malformed geocoder response for {address!r}", origin=address) from exc
        self._cache[address] = coords
        return coords

    def geocode_all(self, addresses: Iterable[str]) -> dict[str, tuple[float, float]]:
        return {address: self.geocode(address) for address in dict.fromkeys(addresses)}
