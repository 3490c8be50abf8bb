import asyncio
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..schemas.common import OpenMeteoResponse, WeatherRecord

# =========================
# Errors
# =========================

class UpstreamError(Exception):
    """Base for every way the forecast call can fail.

    ``status_code`` and ``public_message`` are what the caller sees; ``cause``
    is only logged.
    """

    status_code = 500
    public_message = "Failed to fetch weather data"

    def __init__(self, cause: Optional[BaseException] = None, detail: Optional[str] = None):
        self.cause = cause
        self.detail = detail or (repr(cause) if cause is not None else self.public_message)
        super().__init__(self.detail)


class RequestBuildError(UpstreamError):
    public_message = "Failed to create weather request"


class UpstreamTimeout(UpstreamError):
    status_code = 504
    public_message = "Weather service timeout"


class UpstreamTransportError(UpstreamError):
    pass


class UpstreamStatusError(UpstreamError):
    status_code = 503
    public_message = "Weather service unavailable"

    def __init__(self, upstream_status: int):
        self.upstream_status = upstream_status
        super().__init__(detail=f"Open-Meteo API returned status: {upstream_status}")


class UpstreamBodyError(UpstreamError):
    public_message = "Failed to read weather data"


class UpstreamParseError(UpstreamError):
    public_message = "Failed to parse weather data"


# =========================
# Fetch
# =========================

def forecast_params(settings: Settings) -> Dict[str, Any]:
    return {
        "latitude": settings.latitude,
        "longitude": settings.longitude,
        "current": ",".join(settings.current_fields),
        "hourly": ",".join(settings.hourly_fields),
    }


async def fetch_forecast(client: httpx.AsyncClient, settings: Settings) -> OpenMeteoResponse:
    """GET the forecast and parse it. Raises an UpstreamError subclass on any failure.

    The whole exchange runs inside the caller's task, so cancelling the inbound
    request cancels the outbound one too.
    """
    try:
        request = client.build_request("GET", settings.upstream_url, params=forecast_params(settings))
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise RequestBuildError(e) from e

    try:
        body = await asyncio.wait_for(_exchange(client, request), timeout=settings.request_timeout)
    except asyncio.TimeoutError as e:
        raise UpstreamTimeout(e, detail="Weather API request timed out") from e

    try:
        return OpenMeteoResponse.model_validate_json(body)
    except ValidationError as e:
        raise UpstreamParseError(e) from e


async def _exchange(client: httpx.AsyncClient, request: httpx.Request) -> bytes:
    try:
        response = await client.send(request, stream=True)
    except httpx.TimeoutException as e:
        raise UpstreamTimeout(e) from e
    except httpx.HTTPError as e:
        raise UpstreamTransportError(e) from e

    try:
        if response.status_code != 200:
            raise UpstreamStatusError(response.status_code)
        try:
            return await response.aread()
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(e) from e
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise UpstreamBodyError(e) from e
    finally:
        await response.aclose()


# =========================
# Transform
# =========================

def to_records(payload: OpenMeteoResponse) -> List[WeatherRecord]:
    # zip stops at the shorter of the two columns; null samples become zero values
    hourly = payload.hourly
    return [
        WeatherRecord(time=t or "", temperature_2m=0.0 if temp is None else temp)
        for t, temp in zip(hourly.time, hourly.temperature_2m)
    ]
