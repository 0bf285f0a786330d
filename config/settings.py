"""
Settings
========

Runtime configuration read from environment variables (and a local ``.env``
file when present).
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_SHEET_ID = "1yjOEf3aBN-MBKuUY1ypyrxRo5x2mqH3WAFZlz3aPbls"
DEFAULT_CORS_ORIGINS = "http://localhost:4200,http://localhost:3000,http://localhost:8501"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    sheet_id: str = DEFAULT_SHEET_ID
    sheet_gid: str = "0"
    csv_url_override: Optional[str] = None
    fetch_timeout: float = 30.0
    cache_ttl: float = 300.0
    cors_origins: Tuple[str, ...] = tuple(DEFAULT_CORS_ORIGINS.split(","))
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_urls: Tuple[str, ...] = ("http://localhost:3000/api",)
    dash_username: str = "Chandan Bera"
    dash_employee_id: str = "12340987"
    log_level: str = "INFO"

    @property
    def csv_url(self) -> str:
        if self.csv_url_override:
            return self.csv_url_override
        return (f"https://docs.google.com/spreadsheets/d/{self.sheet_id}"
                f"/export?format=csv&gid={self.sheet_gid}")


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Builds Settings from the environment. Values in the environment win over the .env file."""
    load_dotenv(env_file)

    return Settings(
        sheet_id=os.getenv("SHEET_ID", DEFAULT_SHEET_ID),
        sheet_gid=os.getenv("SHEET_GID", "0"),
        csv_url_override=os.getenv("SHEET_CSV_URL") or None,
        fetch_timeout=_number("FETCH_TIMEOUT_SECONDS", "30", float),
        cache_ttl=_number("CACHE_TTL_SECONDS", "300", float),
        cors_origins=_split_list(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=_number("PORT", "3000", int),
        api_urls=_split_list(os.getenv("API_URLS", "http://localhost:3000/api")),
        dash_username=os.getenv("DASH_USERNAME", "Chandan Bera"),
        dash_employee_id=os.getenv("DASH_EMPLOYEE_ID", "12340987"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
