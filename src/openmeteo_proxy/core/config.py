import os
import pathlib
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

DEFAULT_CONFIG_PATH = "configs/default.yaml"

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    port: int = 8080
    log_level: str = "INFO"

    # Upstream forecast query
    upstream_url: str = OPEN_METEO_URL
    latitude: float = 41.05
    longitude: float = 28.72
    current_fields: Tuple[str, ...] = ("temperature_2m", "wind_speed_10m")
    hourly_fields: Tuple[str, ...] = ("temperature_2m", "relative_humidity_2m", "wind_speed_10m")
    request_timeout: float = 10.0

    # Server limits (seconds / bytes)
    idle_timeout: float = 60.0
    max_header_bytes: int = 1 << 20
    shutdown_grace: float = 30.0

    # Rate limiting
    rate_limit_max: int = 100
    rate_limit_window: float = 60.0

    cache_max_age: int = 300


def load_config(path: str) -> Dict[str, Any]:
    p = pathlib.Path(path)
    if not p.is_file():
        return {}
    with open(p, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"config file {path} must contain a mapping, got {type(cfg).__name__}")
    return cfg


def load_settings(path: Optional[str] = None) -> Settings:
    """Defaults, then the YAML file, then PORT / LOG_LEVEL from the environment."""
    values = load_config(path or os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH))

    port = os.getenv("PORT", "").strip()
    if port:
        values["port"] = port
    log_level = os.getenv("LOG_LEVEL", "").strip()
    if log_level:
        values["log_level"] = log_level

    return Settings(**values)


def cfg_summary(settings: Settings) -> Dict[str, Any]:
    return {
        "port": settings.port,
        "upstream_url": settings.upstream_url,
        "location": {"latitude": settings.latitude, "longitude": settings.longitude},
        "request_timeout": settings.request_timeout,
        "rate_limit": f"{settings.rate_limit_max}/{settings.rate_limit_window:g}s",
        "shutdown_grace": settings.shutdown_grace,
    }
