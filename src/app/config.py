"""Application configuration and settings management."""

from pathlib import Path
from typing import Any

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="BOXTRACK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Box Delivery Insights API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for report exports.")
    destination_tolerance_meters: float = Field(
        default=5000.0,
        ge=0.0,
        description="Radius around a destination within which a scan counts as delivered there.",
    )
    timeline_window_days: int = Field(
        default=182,
        ge=1,
        description="Maximum history (days) rendered in insight timelines.",
    )
    index_max_workers: int = Field(
        default=8,
        ge=1,
        description="Thread pool size for batch reindex/recalculate jobs.",
    )
    report_formats: tuple[str, ...] = Field(
        default=("csv",),
        description="File formats written when a delivery report is persisted (csv, xlsx).",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "report_formats", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
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

    @field_validator("report_formats")
    @classmethod
    def _validate_report_formats(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(item.lower().lstrip(".") for item in value)
        unknown = [item for item in normalized if item not in {"csv", "xlsx"}]
        if unknown:
            raise ValueError(f"Unsupported report formats: {', '.join(unknown)}")
        return normalized


settings = Settings()
