from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class HealthOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    status: str


class WeatherRecord(BaseModel):
    time: str
    temperature_2m: float


# Upstream (Open-Meteo) payload; only the fields we read.
# Open-Meteo sends null for missing samples and may send null blocks.
class OpenMeteoHourly(BaseModel):
    time: List[Optional[str]] = []
    temperature_2m: List[Optional[float]] = []

    @field_validator("time", "temperature_2m", mode="before")
    @classmethod
    def _null_column(cls, v):
        return [] if v is None else v


class OpenMeteoResponse(BaseModel):
    hourly: OpenMeteoHourly = OpenMeteoHourly()

    @field_validator("hourly", mode="before")
    @classmethod
    def _null_block(cls, v):
        return {} if v is None else v
