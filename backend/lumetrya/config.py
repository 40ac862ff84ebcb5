"""Runtime settings read from the environment.

A `.env` file at the repository root is loaded first, so local development can
keep secrets out of the shell profile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

# Single-tenant deployment: every row belongs to this user.
DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000000"


@dataclass(frozen=True)
class Settings:
    """Container for service and client configuration.

    Attributes:
        user_id: Owner id stamped on every stored row.
        log_level: Root logging level name.
        cors_allow_origins: Origins allowed by the CORS middleware.
        openai_api_key: Key for the text-generation service (empty disables it).
        openai_model: Model used for report analysis.
        api_url: Base URL the persistence gateway talks to.
        save_delay: Debounce delay in seconds before the gateway saves.
    """
    user_id: str
    log_level: str
    cors_allow_origins: list[str]
    openai_api_key: str
    openai_model: str
    api_url: str
    save_delay: float


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `LUMETRYA_SAVE_DELAY` is not a non-negative number.
    """
    raw_delay = os.getenv("LUMETRYA_SAVE_DELAY", "1.0").strip()
    try:
        save_delay = float(raw_delay)
    except ValueError:
        raise RuntimeError(f"LUMETRYA_SAVE_DELAY must be a number, got {raw_delay!r}")
    if save_delay < 0:
        raise RuntimeError("LUMETRYA_SAVE_DELAY must be >= 0")

    return Settings(
        user_id=os.getenv("LUMETRYA_USER_ID", DEFAULT_USER_ID),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        api_url=os.getenv("LUMETRYA_API_URL", "http://localhost:8080").rstrip("/"),
        save_delay=save_delay,
    )
