"""Address geocoding against an OpenStreetMap Nominatim-compatible API.

NOTE:
Nominatim usage policy requires a valid User-Agent with contact info and
reasonable rate limits. Successful lookups are cached in Redis to keep the
request volume low.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Optional

import httpx

from ..cache import geocoding_cache
from ..config import (
    GEOCODING_MAX_RETRIES,
    GEOCODING_MIN_RELEVANCE,
    GEOCODING_TIMEOUT_SECONDS,
    NOMINATIM_BASE_URL,
    NOMINATIM_USER_AGENT,
)
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)


class GeocodingError(ExternalServiceError):
    """Base class for geocoding failures"""


class GeocodingTimeoutError(GeocodingError):
    def __init__(self, attempts: int):
        super().__init__(f"Geocoding timed out after {attempts} attempt(s)")


class InvalidAddressFormatError(GeocodingError):
    def __init__(self, address: str, reason: str = "no matching result"):
        super().__init__(f"Could not geocode address '{address}': {reason}")
        self.address = address


class GeocodingServiceUnavailableError(GeocodingError):
    def __init__(self, detail: str = "Geocoding provider unavailable"):
        super().__init__(detail)


@dataclass
class GeocodingResult:
    latitude: float
    longitude: float
    normalized_address: str
    relevance: float


class GeocodingClient:
    """Thin async client for the Nominatim ``/search`` endpoint"""

    def __init__(
        self,
        base_url: str = NOMINATIM_BASE_URL,
        user_agent: str = NOMINATIM_USER_AGENT,
        timeout: float = GEOCODING_TIMEOUT_SECONDS,
        max_attempts: int = GEOCODING_MAX_RETRIES,
        min_relevance: float = GEOCODING_MIN_RELEVANCE,
        backoff_seconds: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        use_cache: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.min_relevance = min_relevance
        self.backoff_seconds = backoff_seconds
        self.transport = transport
        self.use_cache = use_cache

    @staticmethod
    def _cache_key(address: str) -> str:
        return f"search:{' '.join(address.lower().split())}"

    async def geocode(self, address: str, country_code: Optional[str] = "mx") -> GeocodingResult:
        """
        Resolve a free-form address to coordinates.

        Raises:
            GeocodingTimeoutError: Every attempt timed out
            InvalidAddressFormatError: No result, or best result below min relevance
            GeocodingServiceUnavailableError: Provider kept failing or rejected us
        """
        address = (address or "").strip()
        if not address:
            raise InvalidAddressFormatError(address, "address is empty")

        cache_key = self._cache_key(f"{country_code or 'all'}:{address}")
        if self.use_cache:
            cached = geocoding_cache.get(cache_key)
            if cached:
                return GeocodingResult(**cached)

        raw = await self._search(address, country_code)
        result = self._pick_best(address, raw)

        if self.use_cache:
            geocoding_cache.set(cache_key, asdict(result))
        return result

    async def _search(self, address: str, country_code: Optional[str]) -> list[dict]:
        params = {"q": address, "format": "json", "addressdetails": 1, "limit": "5"}
        if country_code:
            params["countrycodes"] = country_code
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        url = f"{self.base_url}/search"

        timed_out = False
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    resp = await client.get(url, params=params, headers=headers)
                except httpx.TimeoutException:
                    timed_out = True
                    logger.warning(f"⚠️ Geocoding timeout (attempt {attempt}/{self.max_attempts})")
                except httpx.HTTPError as e:
                    logger.error(f"❌ Geocoding transport error: {e}")
                    raise GeocodingServiceUnavailableError() from e
                else:
                    if resp.status_code < 400:
                        return self._parse_results(resp)
                    if resp.status_code < 500:
                        logger.warning(f"Nominatim error {resp.status_code}: {resp.text[:200]}")
                        if resp.status_code == 429:
                            raise GeocodingServiceUnavailableError("Geocoding provider rate limit hit")
                        raise InvalidAddressFormatError(address, f"provider returned {resp.status_code}")
                    timed_out = False
                    logger.warning(
                        f"⚠️ Nominatim {resp.status_code} (attempt {attempt}/{self.max_attempts})"
                    )

                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff_seconds * (2 ** (attempt - 1)))

        if timed_out:
            raise GeocodingTimeoutError(self.max_attempts)
        raise GeocodingServiceUnavailableError()

    @staticmethod
    def _parse_results(resp: httpx.Response) -> list[dict]:
        """Decode a /search body; anything but a JSON list is a provider fault"""
        try:
            payload = resp.json()
        except ValueError as e:
            logger.error(f"❌ Nominatim returned a non-JSON body: {resp.text[:200]}")
            raise GeocodingServiceUnavailableError("Geocoding provider returned an invalid response") from e

        if not isinstance(payload, list):
            logger.error(f"❌ Nominatim returned {type(payload).__name__} instead of a result list")
            raise GeocodingServiceUnavailableError("Geocoding provider returned an invalid response")
        return payload

    def _pick_best(self, address: str, raw: list[dict]) -> GeocodingResult:
        candidates = [
            item for item in raw if isinstance(item, dict) and item.get("lat") and item.get("lon")
        ]
        if not candidates:
            raise InvalidAddressFormatError(address)

        try:
            best = max(candidates, key=lambda item: float(item.get("importance") or 0))
            relevance = float(best.get("importance") or 0)
            latitude, longitude = float(best["lat"]), float(best["lon"])
        except (TypeError, ValueError) as e:
            logger.error(f"❌ Nominatim returned unparseable coordinates for '{address}'")
            raise GeocodingServiceUnavailableError("Geocoding provider returned an invalid response") from e

        if relevance < self.min_relevance:
            raise InvalidAddressFormatError(
                address, f"best match relevance {relevance:.2f} below {self.min_relevance:.2f}"
            )

        return GeocodingResult(
            latitude=latitude,
            longitude=longitude,
            normalized_address=best.get("display_name") or address,
            relevance=relevance,
        )


def get_geocoding_client() -> GeocodingClient:
    """Dependency injection for GeocodingClient"""
    return GeocodingClient()
