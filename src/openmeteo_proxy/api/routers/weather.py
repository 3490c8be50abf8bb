from typing import List

import httpx
from fastapi import APIRouter, Depends, Request, Response

from ...core.http import get_http_client
from ...schemas.common import WeatherRecord
from ...services.open_meteo import fetch_forecast, to_records

router = APIRouter()


@router.get("/api/weather", response_model=List[WeatherRecord])
async def weather(
    request: Request,
    response: Response,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> List[WeatherRecord]:
    settings = request.app.state.settings
    payload = await fetch_forecast(client, settings)
    response.headers["Cache-Control"] = f"public, max-age={settings.cache_max_age}"
    return to_records(payload)
