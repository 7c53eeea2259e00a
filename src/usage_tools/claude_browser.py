"""Browser setup for the claude.ai usage page."""

from __future__ import annotations

import subprocess
import sys

from loguru import logger
from selenium import webdriver
from selenium.webdriver.chrome.options import Options

from plan_usage.config import BrowserConfig

BASE_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-first-run",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

SCRAPE_ARGS = [
    "--disable-session-crashed-bubble",
    "--disable-infobars",
    "--noerrdialogs",
    "--hide-crash-restore-bubble",
]

LOGIN_ARGS = [
    "--window-position=0,0",
    "--window-size=1200,700",
]

OFFSCREEN_RECT = {"x": -2000, "y": 0, "width": 800, "height": 600}

MINIMIZE_SCRIPT = """
tell application "System Events"
  set chromeProcs to every process whose name contains "Chromium" or name contains "chrome"
  repeat with proc in chromeProcs
    try
      set miniaturized of every window of proc to true
    end try
  end repeat
end tell
"""


def build_chrome_options(config: BrowserConfig, login: bool = False) -> Options:
    """Chrome options for a persistent, always-windowed profile.

    Headless Chrome is blocked by Cloudflare on claude.ai, so the window is
    always real; unattended runs hide it with hide_window() instead.
    """
    options = Options()
    options.add_argument(f"--user-data-dir={config.profile_dir}")
    for arg in BASE_ARGS:
        options.add_argument(arg)
    if login:
        for arg in LOGIN_ARGS:
            options.add_argument(arg)
    else:
        for arg in SCRAPE_ARGS:
            options.add_argument(arg)
        if not config.headed:
            options.add_argument("--window-size=800,600")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    options.add_experimental_option("useAutomationExtension", False)
    return options


def build_chrome_for_claude(config: BrowserConfig, login: bool = False) -> webdriver.Chrome:
    """Build Chrome driver bound to the saved claude.ai profile."""
    config.profile_dir.mkdir(parents=True, exist_ok=True)
    options = build_chrome_options(config, login=login)
    driver = webdriver.Chrome(options=options)
    driver.set_page_load_timeout(config.launch_timeout_secs if login else config.navigation_timeout_secs)
    return driver


def hide_window(driver) -> None:
    """Move the window off-screen, then minimize it on macOS. Best effort."""
    try:
        driver.set_window_rect(**OFFSCREEN_RECT)
        logger.info("[CLAUDE] Window moved off-screen")
    except Exception as exc:  # noqa: BLE001
        logger.warning("[CLAUDE] Failed to hide window: {}", exc)
        return

    if sys.platform != "darwin":
        return
    try:
        subprocess.run(
            ["osascript", "-e", MINIMIZE_SCRIPT],
            capture_output=True,
            text=True,
            timeout=10,
            check=True,
        )
        logger.info("[CLAUDE] Window minimized via AppleScript")
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("[CLAUDE] AppleScript minimize failed: {}", exc)
