"""
Startup configuration.

Values come from the process environment, with a `.env` file in the working
directory as a fallback. The API key, model and watched directory are
required; anything missing is a fatal ConfigError raised before watching starts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from ticketcal.errors import ConfigError
from ticketcal.image_llm_client import DEFAULT_BASE_URL, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECONDS
from ticketcal.logging_helper import Log

REQUIRED_KEYS = ("OPENROUTER_API_KEY", "MODEL", "WATCHDIR")
DEFAULT_LOG_DIR = Path("logs")

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str
    watch_dir: Path
    output_dir: Path
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    log_dir: Path = DEFAULT_LOG_DIR
    use_stub: bool = False


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw.strip())
    except ValueError as err:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from err
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {raw!r}")
    return value


def load_log_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """Log directory, readable before the rest of the settings are validated."""
    env = os.environ if env is None else env
    return Path(env.get("TICKETCAL_LOG_DIR") or DEFAULT_LOG_DIR)


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[Path] = None) -> Settings:
    """
    Load and validate settings.

    Args:
        env: Mapping to read instead of os.environ (the .env file is not read then)
        dotenv_path: Explicit .env file to load into os.environ

    Raises:
        ConfigError: if a required value is missing or a numeric value is malformed
    """
    if env is None:
        # Existing environment variables win over the .env file
        load_dotenv(dotenv_path, override=False)
        env = os.environ

    missing = [key for key in REQUIRED_KEYS if not (env.get(key) or "").strip()]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    settings = Settings(
        api_key=env["OPENROUTER_API_KEY"].strip(),
        model=env["MODEL"].strip(),
        watch_dir=Path(env["WATCHDIR"].strip()).expanduser(),
        output_dir=Path(env.get("OUTPUT_DIR") or ".").expanduser(),
        base_url=(env.get("OPENROUTER_BASE_URL") or DEFAULT_BASE_URL).strip(),
        request_timeout=_number(env, "REQUEST_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, float),
        max_retries=_number(env, "MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
        log_dir=load_log_dir(env),
        use_stub=(env.get("TICKETCAL_USE_STUB") or "").strip().lower() in _TRUE_VALUES,
    )

    Log.kv({
        "stage": "config",
        "model": settings.model,
        "watch_dir": str(settings.watch_dir),
        "output_dir": str(settings.output_dir),
        "timeout_s": settings.request_timeout,
        "max_retries": settings.max_retries,
        "stub": settings.use_stub
    })
    return settings
