"""Read the OAuth access token the Claude CLI keeps on disk."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from plan_usage.config import OAuthConfig
from plan_usage.errors import (
    CredentialsExpiredError,
    CredentialsInvalidError,
    CredentialsMissingError,
)


@dataclass
class OAuthCredentials:
    access_token: str
    expires_at: Optional[int] = None  # epoch milliseconds

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        if not self.expires_at:
            return False
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return self.expires_at <= now_ms


def load_credentials(config: OAuthConfig, now_ms: Optional[int] = None) -> OAuthCredentials:
    """Return the bearer token, preferring CLAUDE_ACCESS_TOKEN over the file.

    The token is never refreshed here; the Claude CLI owns that file.
    """
    if config.access_token:
        logger.debug("[OAUTH] Using access token from environment")
        return OAuthCredentials(access_token=config.access_token)

    path = config.credentials_path.expanduser()
    if not path.is_file():
        logger.error("[OAUTH] Credentials file not found: {}", path)
        raise CredentialsMissingError(f"Credentials file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise CredentialsInvalidError(f"Failed to parse credentials file {path}: {exc}") from exc

    oauth = data.get("claudeAiOauth") if isinstance(data, dict) else None
    token = oauth.get("accessToken") if isinstance(oauth, dict) else None
    if not token or not isinstance(token, str):
        raise CredentialsInvalidError(f"No claudeAiOauth.accessToken in {path}")

    expires_at = oauth.get("expiresAt")
    creds = OAuthCredentials(
        access_token=token,
        expires_at=int(expires_at) if isinstance(expires_at, (int, float)) else None,
    )
    if creds.is_expired(now_ms):
        raise CredentialsExpiredError(
            "OAuth access token has expired; run the Claude CLI once to refresh it"
        )

    logger.debug("[OAUTH] Loaded access token from {}", path)
    return creds
