"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))

DEVELOPMENT = "development"


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/mealmerge.db"),
        description="SQLite database location.",
    )
    environment: str = Field(
        default="production",
        description="Deployment environment (development/test/production).",
    )
    admin_password: Optional[str] = Field(
        default=None,
        description="Shared service secret granting admin privilege; disabled when unset.",
    )
    identity_provider_url: Optional[str] = Field(
        default=None,
        description="Base URL of the hosted auth service used to resolve bearer tokens.",
    )
    identity_provider_api_key: Optional[str] = Field(
        default=None,
        description="Public API key sent alongside token verification calls.",
    )
    identity_provider_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the identity provider before failing resolution.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    rate_limit_window_seconds: float = Field(
        default=60.0,
        description="Length of the fixed rate-limit window.",
    )
    merge_rate_limit: int = Field(
        default=3,
        description="Maximum merge/recovery requests per client key per window.",
    )
    listing_rate_limit: int = Field(
        default=10,
        description="Maximum read-only listing requests per client key per window.",
    )
    rate_limit_sweep_enabled: bool = Field(
        default=True,
        description="Periodically drop elapsed rate-limit windows when true.",
    )
    rate_limit_sweep_interval: float = Field(
        default=300.0,
        description="Seconds between rate-limit window sweeps.",
    )
    staleness_days: int = Field(
        default=30,
        description="Guest data older than this many days cannot be merged by end users.",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == DEVELOPMENT


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("MEALMERGE_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (environment := _env("MEALMERGE_ENV")):
        payload["environment"] = environment
    if (admin_password := _env("MEALMERGE_ADMIN_PASSWORD")):
        payload["admin_password"] = admin_password
    if (idp_url := _env("MEALMERGE_IDENTITY_PROVIDER_URL")):
        payload["identity_provider_url"] = idp_url
    if (idp_key := _env("MEALMERGE_IDENTITY_PROVIDER_API_KEY")):
        payload["identity_provider_api_key"] = idp_key
    if (idp_timeout := _env("MEALMERGE_IDENTITY_PROVIDER_TIMEOUT")):
        try:
            payload["identity_provider_timeout"] = float(idp_timeout)
        except ValueError:
            pass
    if (log_level := _env("MEALMERGE_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("MEALMERGE_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("MEALMERGE_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (window := _env("MEALMERGE_RATE_LIMIT_WINDOW_SECONDS")):
        try:
            payload["rate_limit_window_seconds"] = float(window)
        except ValueError:
            pass
    if (merge_limit := _env("MEALMERGE_MERGE_RATE_LIMIT")):
        try:
            payload["merge_rate_limit"] = int(merge_limit)
        except ValueError:
            pass
    if (listing_limit := _env("MEALMERGE_LISTING_RATE_LIMIT")):
        try:
            payload["listing_rate_limit"] = int(listing_limit)
        except ValueError:
            pass
    if (sweep_enabled := _env("MEALMERGE_RATE_LIMIT_SWEEP_ENABLED")):
        payload["rate_limit_sweep_enabled"] = _coerce_bool(sweep_enabled)
    if (sweep_interval := _env("MEALMERGE_RATE_LIMIT_SWEEP_INTERVAL")):
        try:
            payload["rate_limit_sweep_interval"] = float(sweep_interval)
        except ValueError:
            pass
    if (staleness_days := _env("MEALMERGE_STALENESS_DAYS")):
        try:
            payload["staleness_days"] = int(staleness_days)
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
