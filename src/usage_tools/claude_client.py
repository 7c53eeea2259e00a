"""claude.ai usage page client driven through Selenium."""

from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.support.ui import WebDriverWait

from plan_usage.config import BrowserConfig
from plan_usage.errors import NotLoggedInError, UsageScrapeError
from plan_usage.state import UsageSnapshot, utc_now
from . import claude_selectors as S
from .claude_browser import build_chrome_for_claude, hide_window
from .claude_scraper import has_percentage, parse_usage_text

BANNER = "═" * 63
STILL_WAITING_EVERY = 10


def _log_banner(title: str, lines: list[str]) -> None:
    logger.info("")
    logger.info(BANNER)
    logger.info("  {}", title)
    logger.info(BANNER)
    logger.info("")
    for line in lines:
        logger.info("  {}", line)
    logger.info("")
    logger.info(BANNER)
    logger.info("")


def _current_url(driver) -> str:
    try:
        return driver.current_url or ""
    except WebDriverException:
        return ""


def is_on_login_page(driver) -> bool:
    """True when the URL or the DOM says we are on a sign-in screen."""
    url = _current_url(driver)
    if any(marker in url for marker in S.LOGIN_URL_MARKERS) or S.SETTINGS_URL_MARKER not in url:
        return True

    for locator in S.LOGIN_INDICATORS:
        try:
            if driver.find_elements(*locator):
                return True
        except WebDriverException:
            continue
    return False


def page_text(driver) -> str:
    return driver.execute_script(S.BODY_TEXT_JS) or ""


class ClaudeUsageClient:
    """Scrapes the usage meters from claude.ai/settings/usage."""

    def __init__(
        self,
        config: BrowserConfig,
        driver_factory: Callable[..., object] = build_chrome_for_claude,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.driver_factory = driver_factory
        self.sleep = sleep

    # --- manual login -------------------------------------------------

    def wait_for_manual_login(self, driver) -> None:
        """Poll until the user has signed in and the usage page is showing.

        No timeout unless config.login_timeout_secs is set.
        """
        _log_banner(
            "LOGIN REQUIRED - TAKE YOUR TIME",
            [
                "Please log into claude.ai in the browser window.",
                "Once logged in, the script will detect it automatically.",
                "",
                "The browser will stay open until you're logged in.",
                "Press Ctrl+C in terminal to cancel.",
            ],
        )

        deadline: Optional[float] = None
        if self.config.login_timeout_secs:
            deadline = time.monotonic() + self.config.login_timeout_secs

        checks = 0
        while True:
            self.sleep(self.config.login_poll_secs)
            checks += 1

            if checks % STILL_WAITING_EVERY == 0:
                logger.info("[CLAUDE] Still waiting for login...")

            url = _current_url(driver)
            if S.USAGE_URL_MARKER in url:
                logger.info("[CLAUDE] Detected usage page, continuing...")
                return

            if "claude.ai" in url and not any(m in url for m in S.LOGIN_FLOW_MARKERS):
                logger.info("[CLAUDE] Logged in! Navigating to usage page...")
                try:
                    driver.set_page_load_timeout(self.config.post_login_nav_timeout_secs)
                    driver.get(self.config.usage_url)
                    self.sleep(2)
                    if S.USAGE_URL_MARKER in _current_url(driver):
                        logger.info("[CLAUDE] Successfully navigated to usage page")
                        return
                except WebDriverException:
                    logger.info("[CLAUDE] Navigation attempt failed, will retry...")
                finally:
                    driver.set_page_load_timeout(self.config.navigation_timeout_secs)

            if deadline is not None and time.monotonic() >= deadline:
                raise NotLoggedInError(
                    f"Timed out after {self.config.login_timeout_secs}s waiting for login"
                )

    # --- scraping -----------------------------------------------------

    def scrape(self, driver) -> UsageSnapshot:
        """Wait for the meters to render and parse them."""
        fetched_at = utc_now()
        wait = WebDriverWait(driver, self.config.navigation_timeout_secs)
        try:
            # SPAs never go network-idle; readyState plus a visible "N%" is enough.
            wait.until(lambda d: d.execute_script(S.READY_STATE_JS) != "loading")
            logger.info("[CLAUDE] Waiting for usage data to appear...")
            wait.until(lambda d: has_percentage(page_text(d)))
        except TimeoutException as exc:
            raise UsageScrapeError(
                f"Failed to scrape usage data: no usage figures after {self.config.navigation_timeout_secs}s"
            ) from exc

        self.sleep(self.config.render_settle_secs)
        text = page_text(driver)
        logger.info("[CLAUDE] Page loaded, searching for usage data...")
        return parse_usage_text(text, fetched_at=fetched_at)

    def _attempt(self) -> UsageSnapshot:
        logger.info("[CLAUDE] Launching browser (headed: {})...", self.config.headed)
        driver = self.driver_factory(self.config)
        try:
            logger.info("[CLAUDE] Browser launched")
            if not self.config.headed:
                hide_window(driver)

            logger.info("[CLAUDE] Navigating to {}...", self.config.usage_url)
            driver.get(self.config.usage_url)
            logger.info("[CLAUDE] Current URL: {}", _current_url(driver))

            if is_on_login_page(driver):
                if not self.config.headed:
                    raise NotLoggedInError("Not logged in. Run with --headed to log in manually.")
                self.wait_for_manual_login(driver)

            return self.scrape(driver)
        finally:
            try:
                driver.quit()
            except Exception as exc:  # noqa: BLE001
                logger.debug("[CLAUDE] Ignoring error while closing browser: {}", exc)

    def fetch(self) -> UsageSnapshot:
        """Scrape the usage page, retrying once unless running headed."""
        logger.info("[CLAUDE] Using Chrome profile: {}", self.config.profile_dir)
        if not self.config.profile_dir.exists():
            self.config.profile_dir.mkdir(parents=True, exist_ok=True)
            logger.info("[CLAUDE] Created new Chrome profile directory")

        max_attempts = 1 if self.config.headed else self.config.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(max_attempts):
            if attempt > 0:
                logger.info("[CLAUDE] Retry attempt {}/{}...", attempt, self.config.max_retries)
                self.sleep(self.config.retry_delay_secs)
            try:
                return self._attempt()
            except NotLoggedInError:
                raise
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.error("[CLAUDE] Attempt {} failed: {}", attempt + 1, exc)

        if isinstance(last_error, UsageScrapeError):
            raise last_error
        raise UsageScrapeError(f"Failed to scrape usage data: {last_error}") from last_error

    # --- login-only mode ----------------------------------------------

    def login_only(self, wait_for_enter: Callable[[str], str] = input) -> None:
        """Open claude.ai and keep the browser up until Enter is pressed."""
        logger.info("[CLAUDE] Using Chrome profile: {}", self.config.profile_dir)
        logger.info("[CLAUDE] Launching browser for login...")
        driver = self.driver_factory(self.config, login=True)
        try:
            driver.get(self.config.login_url)
            _log_banner(
                "BROWSER OPEN - LOG IN NOW",
                [
                    "1. Log into claude.ai in the browser window",
                    "2. Take as long as you need",
                    "3. When done, press ENTER here to save session and exit",
                ],
            )
            wait_for_enter("")
            logger.info("[CLAUDE] Saving session and closing browser...")
        finally:
            driver.quit()
        logger.info("[CLAUDE] Session saved! You can now run without --login")
