"""Configuration models for the plan usage pollers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env automatically on import (local dev)
load_dotenv()

CLAUDE_HOME = Path.home() / ".claude"
OUTPUT_FILENAME = "plan-usage.json"
DEFAULT_USAGE_URL = "https://claude.ai/settings/usage"
DEFAULT_LOGIN_URL = "https://claude.ai"
DEFAULT_USAGE_API_URL = "https://api.anthropic.com/api/oauth/usage"
DEFAULT_INTERVAL_SECS = 300


class BrowserConfig(BaseModel):
    """Configuration for scraping the usage page with Chrome."""

    profile_dir: Path
    usage_url: str = DEFAULT_USAGE_URL
    login_url: str = DEFAULT_LOGIN_URL
    headed: bool = False
    navigation_timeout_secs: int = 30
    launch_timeout_secs: int = 60
    max_retries: int = 1
    retry_delay_secs: float = 3.0
    login_poll_secs: float = 3.0
    login_timeout_secs: Optional[int] = None
    post_login_nav_timeout_secs: int = 15
    render_settle_secs: float = 1.0


class OAuthConfig(BaseModel):
    """Configuration for the OAuth usage endpoint."""

    credentials_path: Path
    access_token: Optional[str] = None
    usage_api_url: str = DEFAULT_USAGE_API_URL
    beta_header: str = "oauth-2025-04-20"
    timeout_secs: int = 10
    max_retries: int = 1


class Settings(BaseModel):
    """Global settings for both pollers."""

    output_path: Path
    browser: BrowserConfig
    oauth: OAuthConfig
    interval_secs: int = DEFAULT_INTERVAL_SECS
    daemon: bool = False
    log_level: str = "INFO"

    @field_validator("interval_secs")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("interval_secs must be positive")
        return value


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    if not value:
        return default
    return Path(value).expanduser().resolve()


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def default_output_path() -> Path:
    return _env_path("OUTPUT_DIR", CLAUDE_HOME) / OUTPUT_FILENAME


def default_profile_dir() -> Path:
    value = _first_env("PROFILE_DIR", "CHROME_PROFILE_DIR")
    if not value:
        return CLAUDE_HOME / "chrome-profile"
    return Path(value).expanduser().resolve()


def load_settings() -> Settings:
    """Build Settings from environment variables (.env for local dev)."""
    try:
        browser = BrowserConfig(
            profile_dir=default_profile_dir(),
            usage_url=os.getenv("CLAUDE_USAGE_URL", DEFAULT_USAGE_URL),
        )

        oauth = OAuthConfig(
            credentials_path=_env_path("CLAUDE_CREDENTIALS_PATH", CLAUDE_HOME / ".credentials.json"),
            access_token=os.getenv("CLAUDE_ACCESS_TOKEN") or None,
            usage_api_url=os.getenv("CLAUDE_USAGE_API_URL", DEFAULT_USAGE_API_URL),
        )

        return Settings(
            output_path=default_output_path(),
            browser=browser,
            oauth=oauth,
            interval_secs=int(os.getenv("USAGE_INTERVAL_SECS", str(DEFAULT_INTERVAL_SECS))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except (ValidationError, ValueError) as e:
        raise RuntimeError(f"Invalid settings: {e}") from e
