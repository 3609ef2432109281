"""Configuration management for the FACEIT gateway."""

import json
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    api_keys: List[str]
    port: int = 3000
    host: str = "0.0.0.0"
    faceit_base_url: str = "https://open.faceit.com/data/v4"
    default_game: str = "cs2"
    request_timeout_ms: int = 8000
    max_retries: int = 2
    cooldown_ms: int = 6000
    rotation_enabled: bool = True
    batch_size: int = 5
    search_limit: int = 5
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.api_keys:
            raise ValueError(
                "FACEIT_API_KEY or FACEIT_API_KEYS must be set for the gateway to run"
            )
        if self.batch_size < 1:
            raise ValueError("BATCH_SIZE must be a positive integer")


def _parse_api_keys(raw: str) -> List[str]:
    """Accept either a JSON array or a comma-separated list of keys."""
    raw = raw.strip()
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(key).strip() for key in parsed if str(key).strip()]
    return [key.strip() for key in raw.split(",") if key.strip()]


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() not in ("0", "false", "no", "off")


def load_config(use_dotenv: bool = True) -> Config:
    """Load configuration from environment variables.

    Returns:
        Config: Configured application settings

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    if use_dotenv:
        load_dotenv()

    api_keys = _parse_api_keys(os.getenv("FACEIT_API_KEYS", ""))
    if not api_keys:
        fallback_key = os.getenv("FACEIT_API_KEY", "").strip()
        if fallback_key:
            api_keys = [fallback_key]

    return Config(
        api_keys=api_keys,
        port=int(os.getenv("PORT", "3000")),
        host=os.getenv("HOST", "0.0.0.0"),
        faceit_base_url=os.getenv("FACEIT_API_URL", "https://open.faceit.com/data/v4"),
        default_game=os.getenv("FACEIT_GAME", "cs2"),
        request_timeout_ms=int(os.getenv("REQUEST_TIMEOUT_MS", "8000")),
        max_retries=int(os.getenv("FACEIT_MAX_RETRIES", "2")),
        cooldown_ms=int(os.getenv("FACEIT_COOLDOWN_MS", "6000")),
        rotation_enabled=_parse_bool(os.getenv("FACEIT_ROTATION_ENABLED", "true")),
        batch_size=int(os.getenv("BATCH_SIZE", "5")),
        search_limit=int(os.getenv("SEARCH_LIMIT", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
