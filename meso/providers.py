from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from meso import cache, config
from meso.errors import DecodeError, DecodeFailure, NetworkError
from meso.forecast import decode_forecast
from meso.models import DEFAULT_POINT, GeoPoint, HazardKind, RiskValue, TemperatureForecast
from meso.risk import decode_risk

logger = logging.getLogger(__name__)


def default_headers(accept: str = "*/*") -> Dict[str, str]:
    return {"User-Agent": config.USER_AGENT, "Accept": accept}


def make_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Shared client for a dashboard session; the caller owns closing it."""
    if timeout is None:
        timeout = config.FETCH_TIMEOUT_SECONDS
    return httpx.AsyncClient(timeout=timeout, headers=default_headers())


# Provider interface
class Provider:
    """One upstream endpoint. Subclasses implement ``fetch``.

    Each ``fetch`` makes at most one GET (none on a cache hit) and never
    retries. Transport trouble becomes NetworkError, payload trouble becomes
    DecodeFailure.
    """

    name: str = "provider"
    cache_prefix: str = "meso"
    accept: str = "*/*"

    def __init__(self, http: httpx.AsyncClient | None = None, timeout: float | None = None):
        self.http = http
        self.timeout = config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout

    async def fetch(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError

    async def _get(self, url: str, params: Dict[str, Any], decode: Callable[[str], Any]) -> Any:
        key = cache.make_key(self.cache_prefix, {"url": url, "params": params})
        cached = cache.get_text(key)
        if cached is not None:
            return self._decode(decode, cached)

        logger.debug("%s GET %s %s", self.name, url, params)
        try:
            if self.http is not None:
                r = await self.http.get(url, params=params, headers=default_headers(self.accept), timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, headers=default_headers(self.accept)) as client:
                    r = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.name} request timed out: {e!r}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.name} request failed: {e!r}") from e

        if r.status_code != 200:
            raise NetworkError(f"{self.name} returned {r.status_code}: {r.text[:200]}")

        value = self._decode(decode, r.text)
        # only payloads that decoded cleanly are worth keeping
        cache.set_text(key, r.text)
        return value

    @staticmethod
    def _decode(decode: Callable[[str], Any], text: str) -> Any:
        try:
            return decode(text)
        except DecodeError as e:
            raise DecodeFailure(e) from e


class HazardClient(Provider):
    name = "spc-outlook"
    cache_prefix = "hazard:v1"
    accept = "application/json"

    def __init__(self, http: httpx.AsyncClient | None = None, timeout: float | None = None,
                 base_url: str = config.ARCGIS_BASE_URL):
        super().__init__(http=http, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    def query_url(self, kind: HazardKind) -> str:
        return f"{self.base_url}/{kind.layer_id}/query"

    @staticmethod
    def query_params(point: GeoPoint) -> Dict[str, Any]:
        return {
            "f": "json",
            "geometry": point.as_query(),
            "geometryType": "esriGeometryPoint",
            "inSR": 4326,
            "spatialRel": "esriSpatialRelIntersects",
            "outFields": "*",
        }

    async def fetch(self, kind: HazardKind, point: Optional[GeoPoint] = None) -> RiskValue:
        point = point or DEFAULT_POINT
        return await self._get(self.query_url(kind), self.query_params(point), lambda text: decode_risk(text, kind))


class ForecastClient(Provider):
    name = "nbm-text"
    cache_prefix = "forecast:v1"
    accept = "text/plain"

    def __init__(self, http: httpx.AsyncClient | None = None, timeout: float | None = None,
                 url: str = config.NBM_TEXT_URL, station: str = config.STATION_ID):
        super().__init__(http=http, timeout=timeout)
        self.url = url
        self.station = station

    def query_params(self) -> Dict[str, Any]:
        return {"ele": "NBS", "sta": self.station, "cyc": "Latest"}

    async def fetch(self) -> TemperatureForecast:
        return await self._get(self.url, self.query_params(), decode_forecast)
