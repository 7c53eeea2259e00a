import subprocess
from unittest.mock import MagicMock, patch

from plan_usage.config import BrowserConfig
from usage_tools.claude_browser import build_chrome_for_claude, build_chrome_options, hide_window


def test_scrape_options_are_windowed_and_hide_automation(tmp_path):
    config = BrowserConfig(profile_dir=tmp_path / "profile")

    options = build_chrome_options(config)

    assert f"--user-data-dir={config.profile_dir}" in options.arguments
    assert "--disable-blink-features=AutomationControlled" in options.arguments
    assert "--hide-crash-restore-bubble" in options.arguments
    assert "--window-size=800,600" in options.arguments
    assert not any(arg.startswith("--headless") for arg in options.arguments)
    assert options.experimental_options["excludeSwitches"] == ["enable-automation"]


def test_login_options_use_large_visible_window(tmp_path):
    config = BrowserConfig(profile_dir=tmp_path / "profile", headed=True)

    options = build_chrome_options(config, login=True)

    assert "--window-size=1200,700" in options.arguments
    assert "--window-position=0,0" in options.arguments
    assert "--window-size=800,600" not in options.arguments


@patch("usage_tools.claude_browser.webdriver")
def test_build_chrome_creates_profile_dir(mock_webdriver, tmp_path):
    config = BrowserConfig(profile_dir=tmp_path / "new" / "profile")

    driver = build_chrome_for_claude(config)

    assert config.profile_dir.is_dir()
    assert driver is mock_webdriver.Chrome.return_value
    driver.set_page_load_timeout.assert_called_once_with(30)


@patch("usage_tools.claude_browser.subprocess.run")
@patch("usage_tools.claude_browser.sys")
def test_hide_window_moves_offscreen_and_minimizes_on_macos(mock_sys, mock_run):
    mock_sys.platform = "darwin"
    driver = MagicMock()

    hide_window(driver)

    driver.set_window_rect.assert_called_once_with(x=-2000, y=0, width=800, height=600)
    assert mock_run.call_args.args[0][0] == "osascript"


@patch("usage_tools.claude_browser.subprocess.run")
@patch("usage_tools.claude_browser.sys")
def test_hide_window_failures_are_not_fatal(mock_sys, mock_run):
    mock_sys.platform = "darwin"
    mock_run.side_effect = subprocess.CalledProcessError(1, "osascript")
    driver = MagicMock()

    hide_window(driver)

    driver.set_window_rect.side_effect = RuntimeError("no window")
    hide_window(driver)
    assert mock_run.call_count == 1


@patch("usage_tools.claude_browser.subprocess.run")
@patch("usage_tools.claude_browser.sys")
def test_hide_window_skips_applescript_off_macos(mock_sys, mock_run):
    mock_sys.platform = "linux"

    hide_window(MagicMock())

    mock_run.assert_not_called()
