"""City air-quality route backed by the cached WAQI client."""

from fastapi import APIRouter, Depends, Query, Request

from errors import InvalidInputError
from services.aqi import AqiClient

router = APIRouter()


def get_aqi_client(request: Request) -> AqiClient:
    return request.app.state.aqi_client


@router.get("/api/aqi")
async def city_aqi(
    city: str | None = Query(None),
    client: AqiClient = Depends(get_aqi_client),
) -> dict:
    """Normalized AQI summary for ``city``, wrapped in a ``data`` envelope."""
    if not city:
        raise InvalidInputError("Query parameter 'city' is required.")

    summary = await client.fetch_city_aqi(city)
    return {"data": summary.to_dict()}
