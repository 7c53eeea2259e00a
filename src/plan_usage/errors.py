from __future__ import annotations


class UsageError(RuntimeError):
    """Base class for failures while fetching plan usage."""

    pass


class FatalUsageError(UsageError):
    """Raised when retrying (or the next daemon cycle) cannot help."""

    pass


class NotLoggedInError(FatalUsageError):
    """Raised when the browser profile has no claude.ai session."""

    pass


class UsageScrapeError(UsageError):
    """Raised when the usage page could not be scraped."""

    pass


class OAuthUsageError(UsageError):
    """Raised when the OAuth usage endpoint could not be read."""

    pass


class OAuthAuthError(FatalUsageError):
    """Raised when the OAuth usage endpoint rejects the token."""

    def __init__(self, msg: str, status_code: int | None = None):
        super().__init__(msg)
        self.status_code = status_code


class CredentialsMissingError(FatalUsageError):
    """Raised when the OAuth credentials file is not found."""

    pass


class CredentialsInvalidError(FatalUsageError):
    """Raised when the credentials file has no usable access token."""

    pass


class CredentialsExpiredError(FatalUsageError):
    """Raised when the stored access token has already expired."""

    pass
