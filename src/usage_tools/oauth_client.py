"""Client for the OAuth usage endpoint."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Optional

import requests
from loguru import logger

from plan_usage import __version__
from plan_usage.config import OAuthConfig
from plan_usage.errors import OAuthAuthError, OAuthUsageError
from plan_usage.reset_time import format_minutes, minutes_until, parse_iso_timestamp
from plan_usage.state import RawUsage, UsageSnapshot, utc_now
from .oauth_credentials import OAuthCredentials, load_credentials

AUTH_FAILURE_STATUSES = (401, 403)


def _remaining_percent(block: Any) -> Optional[float]:
    if not isinstance(block, dict):
        return None
    utilization = block.get("utilization")
    if not isinstance(utilization, (int, float)) or isinstance(utilization, bool):
        return None
    if not math.isfinite(utilization):
        return None
    remaining = min(max(100.0 - float(utilization), 0.0), 100.0)
    return round(remaining, 1)


def _raw_text(block: Any) -> Optional[str]:
    if not isinstance(block, dict) or block.get("utilization") is None:
        return None
    text = f"{block['utilization']}% used"
    if block.get("resets_at"):
        text += f", resets {block['resets_at']}"
    return text


def snapshot_from_response(payload: dict, now: Optional[datetime] = None) -> UsageSnapshot:
    """Map the usage response onto a snapshot of remaining percentages."""
    now = now or utc_now()
    five_hour = payload.get("five_hour")
    seven_day = payload.get("seven_day")

    snapshot = UsageSnapshot(
        source="oauth",
        fetched_at=now,
        five_hour_percent=_remaining_percent(five_hour),
        weekly_percent=_remaining_percent(seven_day),
        raw=RawUsage(five_hour=_raw_text(five_hour), weekly=_raw_text(seven_day)),
    )

    resets_at = parse_iso_timestamp(five_hour.get("resets_at")) if isinstance(five_hour, dict) else None
    if resets_at is not None:
        snapshot.resets_in_minutes = minutes_until(resets_at, now)
        snapshot.resets_in = format_minutes(snapshot.resets_in_minutes)

    return snapshot


class OAuthUsageClient:
    """Fetches plan usage with the Claude CLI's OAuth token."""

    def __init__(
        self,
        config: OAuthConfig,
        http_get: Callable[..., requests.Response] = requests.get,
        credentials_loader: Callable[[OAuthConfig], OAuthCredentials] = load_credentials,
    ):
        self.config = config
        self.http_get = http_get
        self.credentials_loader = credentials_loader

    def _headers(self, token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "anthropic-beta": self.config.beta_header,
            "Accept": "application/json",
            "User-Agent": f"claude-plan-usage/{__version__}",
        }

    def _request(self, headers: dict) -> dict:
        response = self.http_get(
            self.config.usage_api_url,
            headers=headers,
            timeout=self.config.timeout_secs,
        )
        if response.status_code in AUTH_FAILURE_STATUSES:
            raise OAuthAuthError(
                f"Usage API rejected the access token (HTTP {response.status_code}); "
                "run the Claude CLI to sign in again",
                status_code=response.status_code,
            )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise OAuthUsageError(f"Unexpected usage response type: {type(payload).__name__}")
        return payload

    def fetch_raw(self) -> dict:
        """GET the usage endpoint, retrying once on anything but an auth failure."""
        creds = self.credentials_loader(self.config)
        headers = self._headers(creds.access_token)
        attempts = self.config.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            if attempt > 0:
                logger.info("[OAUTH] Retry attempt {}/{}...", attempt, self.config.max_retries)
            try:
                logger.debug("[OAUTH] GET {}", self.config.usage_api_url)
                return self._request(headers)
            except OAuthAuthError:
                raise
            except (requests.RequestException, ValueError, OAuthUsageError) as exc:
                last_error = exc
                logger.error("[OAUTH] Attempt {} failed: {}", attempt + 1, exc)

        raise OAuthUsageError(f"Failed to fetch usage data: {last_error}") from last_error

    def fetch(self) -> UsageSnapshot:
        payload = self.fetch_raw()
        snapshot = snapshot_from_response(payload)
        if not snapshot.has_any_percent:
            logger.warning("[OAUTH] Usage response had no five_hour or seven_day utilization")
        return snapshot
