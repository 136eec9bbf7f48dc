"""Configuration helpers for Standup Pulse."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    slack_signing_secret: str
    api_key: str
    database_path: Path
    slack_client_id: Optional[str] = None
    slack_client_secret: Optional[str] = None
    dispatch_concurrency: int = 4
    slack_timeout: float = 10.0
    signature_max_age: int = 300
    log_level: str = "info"
    port: int = 8000


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "standup_pulse.db")).expanduser()

    signing_secret = os.getenv("SLACK_SIGNING_SECRET")
    api_key = os.getenv("API_KEY")

    if not signing_secret:
        raise RuntimeError("SLACK_SIGNING_SECRET must be configured")
    if not api_key:
        raise RuntimeError("API_KEY must be configured")

    return Settings(
        slack_signing_secret=signing_secret,
        api_key=api_key,
        database_path=db_path,
        slack_client_id=os.getenv("SLACK_CLIENT_ID"),
        slack_client_secret=os.getenv("SLACK_CLIENT_SECRET"),
        dispatch_concurrency=int(os.getenv("DISPATCH_CONCURRENCY", "4")),
        slack_timeout=float(os.getenv("SLACK_TIMEOUT_SECONDS", "10")),
        signature_max_age=int(os.getenv("SIGNATURE_MAX_AGE_SECONDS", "300")),
        log_level=os.getenv("LOG_LEVEL", "info"),
        port=int(os.getenv("PORT", "8000")),
    )


__all__ = ["Settings", "load_settings"]
