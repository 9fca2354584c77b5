"""Configuration helpers for the FIRMS detection pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env", override=False)


class FirmsSettings(BaseSettings):
    """Environment-driven configuration for fetching and caching FIRMS detections."""

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    map_key: Optional[str] = Field(default=None, validation_alias="FIRMS_MAP_KEY")
    default_source: str = Field(default="VIIRS_SNPP_NRT", validation_alias="FIRMS_DEFAULT_SOURCE")
    default_region: str = Field(default="bolivia", validation_alias="FIRMS_DEFAULT_REGION")
    max_days: int = Field(default=10, validation_alias="FIRMS_MAX_DAYS")
    request_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="FIRMS_REQUEST_TIMEOUT_SECONDS",
    )
    overall_timeout_seconds: float = Field(
        default=25.0,
        validation_alias="FIRMS_OVERALL_TIMEOUT_SECONDS",
    )
    validate_timeout_seconds: float = Field(
        default=5.0,
        validation_alias="FIRMS_VALIDATE_TIMEOUT_SECONDS",
    )
    local_utc_offset_hours: int = Field(default=-4, validation_alias="FIRMS_LOCAL_UTC_OFFSET_HOURS")
    detections_ttl_seconds: float = Field(default=300.0, validation_alias="FIRMS_DETECTIONS_TTL_SECONDS")
    stats_ttl_seconds: float = Field(default=600.0, validation_alias="FIRMS_STATS_TTL_SECONDS")
    cache_sweep_seconds: float = Field(default=60.0, validation_alias="FIRMS_CACHE_SWEEP_SECONDS")

    @field_validator("map_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("max_days", mode="before")
    @classmethod
    def _validate_max_days(cls, value: object) -> int:
        val = int(value)  # raises if not numeric
        if not 1 <= val <= 10:
            raise ValueError("FIRMS_MAX_DAYS must be between 1 and 10")
        return val

    @property
    def has_map_key(self) -> bool:
        return self.map_key is not None


settings = FirmsSettings()
