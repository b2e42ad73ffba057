"""WAQI feed client — fetches a city's air quality and normalizes it.

The provider answers HTTP 200 even for failures and reports them through a
``status`` field, with the error message in place of the ``data`` object:

    {"status": "ok", "data": {"aqi": 42, "iaqi": {"pm25": {"v": 42}}, ...}}
    {"status": "error", "data": "Invalid key"}

Every field inside ``data`` is optional and may be missing.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, TypedDict
from urllib.parse import quote

import httpx

from config import Settings
from errors import ConfigurationError, InvalidInputError, UpstreamError
from services.cache import LRUCache

logger = logging.getLogger(__name__)

UPSTREAM_TIMEOUT_SECONDS = 7


class WaqiCity(TypedDict, total=False):
    name: str
    url: str
    geo: list[float]


class WaqiTime(TypedDict, total=False):
    s: str
    iso: str


class WaqiForecastDay(TypedDict, total=False):
    day: str
    avg: float
    min: float
    max: float


class WaqiData(TypedDict, total=False):
    aqi: int
    dominentpol: str
    city: WaqiCity
    time: WaqiTime
    attributions: list[dict[str, str]]
    iaqi: dict[str, dict[str, float]]
    forecast: dict[str, dict[str, list[WaqiForecastDay]]]


@dataclass(frozen=True)
class PollutantReading:
    pollutant: str
    value: float


@dataclass(frozen=True)
class DailyForecast:
    pollutant: str
    day: str
    avg: float
    min: float
    max: float


@dataclass(frozen=True)
class Attribution:
    name: str
    url: str


@dataclass(frozen=True)
class Coordinates:
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True)
class CityAqiSummary:
    city: str
    aqi: float | None = None
    dominant_pollutant: str | None = None
    coordinates: Coordinates = field(default_factory=Coordinates)
    updated_at: str | None = None
    attribution: tuple[Attribution, ...] = ()
    source_url: str | None = None
    readings: tuple[PollutantReading, ...] = ()
    forecast: tuple[DailyForecast, ...] = ()

    def to_dict(self) -> dict:
        """JSON-ready camelCase dict; NaN forecast values become None."""
        return {
            "city": self.city,
            "aqi": self.aqi,
            "dominantPollutant": self.dominant_pollutant,
            "coordinates": asdict(self.coordinates),
            "updatedAt": self.updated_at,
            "attribution": [asdict(a) for a in self.attribution],
            "sourceUrl": self.source_url,
            "readings": [asdict(r) for r in self.readings],
            "forecast": [
                {k: _json_number(v) for k, v in asdict(f).items()} for f in self.forecast
            ],
        }


def _json_number(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def map_readings(iaqi: Any) -> tuple[PollutantReading, ...]:
    """Numeric ``iaqi`` values, highest first."""
    readings = [
        PollutantReading(pollutant=name, value=reading["v"])
        for name, reading in _as_dict(iaqi).items()
        if isinstance(reading, dict) and _is_number(reading.get("v"))
    ]
    return tuple(sorted(readings, key=lambda r: r.value, reverse=True))


def map_forecast(daily: Any) -> tuple[DailyForecast, ...]:
    """Flatten ``{pollutant: [{day, avg, min, max}, ...]}`` ordered by day label."""
    entries = []
    for pollutant, days in _as_dict(daily).items():
        if not isinstance(days, list):
            continue
        for item in days:
            if not isinstance(item, dict) or not item.get("day"):
                continue
            entries.append(
                DailyForecast(
                    pollutant=pollutant,
                    day=str(item["day"]),
                    avg=item["avg"] if _is_number(item.get("avg")) else math.nan,
                    min=item["min"] if _is_number(item.get("min")) else math.nan,
                    max=item["max"] if _is_number(item.get("max")) else math.nan,
                )
            )
    return tuple(sorted(entries, key=lambda f: f.day))


def map_attributions(attributions: Any) -> tuple[Attribution, ...]:
    if not isinstance(attributions, list):
        return ()
    return tuple(
        Attribution(name=a["name"], url=a["url"])
        for a in attributions
        if isinstance(a, dict) and _str_or_none(a.get("name")) and _str_or_none(a.get("url"))
    )


def map_to_summary(data: WaqiData, fallback_city: str) -> CityAqiSummary:
    """Map the provider's ``data`` object into a CityAqiSummary."""
    city = _as_dict(data.get("city"))
    time_info = _as_dict(data.get("time"))
    geo = city.get("geo") if isinstance(city.get("geo"), list) else []

    return CityAqiSummary(
        city=_str_or_none(city.get("name")) or fallback_city,
        aqi=data["aqi"] if _is_number(data.get("aqi")) else None,
        dominant_pollutant=_str_or_none(data.get("dominentpol")),
        coordinates=Coordinates(
            lat=geo[0] if len(geo) > 0 and _is_number(geo[0]) else None,
            lon=geo[1] if len(geo) > 1 and _is_number(geo[1]) else None,
        ),
        updated_at=_str_or_none(time_info.get("iso")) or _str_or_none(time_info.get("s")),
        attribution=map_attributions(data.get("attributions")),
        source_url=_str_or_none(city.get("url")),
        readings=map_readings(data.get("iaqi")),
        forecast=map_forecast(_as_dict(data.get("forecast")).get("daily")),
    )


class AqiClient:
    """Cached access to the WAQI city feed.

    Args:
        settings: Supplies the upstream base URL, token and cache bounds.
        cache: Summary cache; one is built from ``settings`` when omitted.
        transport: Optional httpx transport, used by tests to stub the upstream.
    """

    def __init__(
        self,
        settings: Settings,
        cache: LRUCache[CityAqiSummary] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.cache = cache if cache is not None else LRUCache(
            max_entries=settings.cache_max_entries,
            ttl_ms=settings.cache_ttl_ms,
        )
        self._transport = transport

    async def fetch_city_aqi(self, city: str) -> CityAqiSummary:
        normalized_city = city.strip()
        if not normalized_city:
            raise InvalidInputError("City must be provided.")

        cached = self.cache.get(normalized_city)
        if cached is not None:
            logger.debug("AQI cache hit for %r", normalized_city)
            return cached

        if not self.settings.upstream_token:
            raise ConfigurationError("AQI_API_TOKEN is not configured.")

        logger.info("Fetching AQI for %r from upstream", normalized_city)
        payload = await self._request(normalized_city)

        status = payload.get("status")
        data = payload.get("data")
        if status != "ok":
            raise UpstreamError(
                data if isinstance(data, str) else "Upstream API responded with an error."
            )
        if isinstance(data, str):
            raise UpstreamError(data)
        if not isinstance(data, dict):
            raise UpstreamError("Upstream API returned no data.")

        summary = map_to_summary(data, normalized_city)
        self.cache.set(normalized_city, summary)
        return summary

    async def _request(self, city: str) -> dict:
        url = f"{self.settings.upstream_base_url.rstrip('/')}/{quote(city, safe='')}/"
        try:
            async with httpx.AsyncClient(
                timeout=UPSTREAM_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                resp = await client.get(url, params={"token": self.settings.upstream_token})
                resp.raise_for_status()
                payload = resp.json()
        except httpx.TimeoutException as e:
            logger.warning("AQI fetch timed out for %r: %s", city, e)
            raise UpstreamError(
                f"Upstream API timed out after {UPSTREAM_TIMEOUT_SECONDS} seconds."
            ) from e
        except httpx.HTTPError as e:
            logger.warning("AQI fetch failed for %r: %s", city, e)
            raise UpstreamError(f"Upstream request failed: {e}") from e
        except ValueError as e:
            logger.warning("AQI fetch for %r returned invalid JSON", city)
            raise UpstreamError("Upstream API returned an invalid response.") from e

        if not isinstance(payload, dict):
            raise UpstreamError("Upstream API returned an invalid response.")
        return payload
