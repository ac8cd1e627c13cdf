"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEXROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "FlexRoute Assistant API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for saved routes and usage data.")
    log_level: str = Field(default="INFO", description="Root log level for the service.")

    ai_provider: Literal["gemini"] = Field(default="gemini", description="Hosted AI provider used for all inference.")
    gemini_api_key: Optional[str] = Field(default=None, description="API key for the Gemini API.")
    gemini_model: str = Field(default="gemini-2.5-flash")
    extraction_max_workers: int = Field(
        default=8,
        ge=1,
        description="Maximum number of screenshots sent to the AI provider concurrently.",
    )

    maps_waypoint_limit: int = Field(
        default=10,
        ge=2,
        description="Maximum stops encoded in a single navigation link before the route is split.",
    )
    traffic_refresh_seconds: int = Field(default=60, ge=1)
    route_start_fix_timeout_seconds: float = Field(default=10.0, ge=0.0)
    route_start_fix_max_age_seconds: float = Field(default=0.0, ge=0.0)
    weather_fix_timeout_seconds: float = Field(default=10.0, ge=0.0)
    weather_fix_max_age_seconds: float = Field(default=3600.0, ge=0.0)

    free_tier_route_limit: int = Field(default=5, ge=0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8081",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
