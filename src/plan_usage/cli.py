"""Command-line entry points for the browser and OAuth pollers."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger

from plan_usage.config import Settings, load_settings
from plan_usage.errors import FatalUsageError
from plan_usage.logging_setup import configure_logging
from plan_usage.state import SnapshotWriter, UsageSnapshot
from plan_usage.workflow import run_loop, run_once

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_AUTHENTICATED = 2
EXIT_INTERRUPTED = 130

BROWSER_EPILOG = """\
Profile stored at: {profile_dir}
Output written to: {output_path}

First run:
  claude-plan-usage --login
  Log into claude.ai, press Enter in terminal when done.

Subsequent runs:
  claude-plan-usage
"""

API_EPILOG = """\
Credentials read from: {credentials_path}
Output written to: {output_path}

The access token is managed by the Claude CLI; run it once if the token
has expired.
"""


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive number of seconds")
    return number


def build_parser(variant: str, settings: Settings) -> argparse.ArgumentParser:
    """argparse parser for "browser" or "api"."""
    if variant == "browser":
        prog = "claude-plan-usage"
        description = "Scrape Claude plan usage from claude.ai/settings/usage."
        epilog = BROWSER_EPILOG.format(
            profile_dir=settings.browser.profile_dir, output_path=settings.output_path
        )
    else:
        prog = "claude-plan-usage-api"
        description = "Fetch Claude plan usage from the OAuth usage API."
        epilog = API_EPILOG.format(
            credentials_path=settings.oauth.credentials_path, output_path=settings.output_path
        )

    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    if variant == "browser":
        parser.add_argument(
            "--headed",
            action="store_true",
            help="Run with a visible browser window (waits for manual login if needed)",
        )
        parser.add_argument(
            "--login",
            action="store_true",
            help="LOGIN MODE: open the browser, wait for you to log in, press Enter to save and exit",
        )
    parser.add_argument(
        "--daemon",
        action="store_true",
        help="Keep running and poll every --interval seconds",
    )
    parser.add_argument(
        "--interval",
        type=_positive_int,
        default=settings.interval_secs,
        help="Seconds between polls in daemon mode (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output JSON path (default: $OUTPUT_DIR/plan-usage.json)",
    )
    return parser


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Merge parsed flags into settings; flags win over the environment."""
    settings.daemon = args.daemon
    settings.interval_secs = args.interval
    if args.output is not None:
        settings.output_path = args.output.expanduser().resolve()
    # login mode is always headed
    if getattr(args, "login", False) or getattr(args, "headed", False):
        settings.browser.headed = True
    return settings


def _execute(fetch: Callable[[], UsageSnapshot], settings: Settings) -> int:
    writer = SnapshotWriter(settings.output_path)
    try:
        if settings.daemon:
            run_loop(fetch, writer, settings.interval_secs)
        else:
            run_once(fetch, writer)
    except FatalUsageError as exc:
        logger.error("{}", exc)
        return EXIT_NOT_AUTHENTICATED
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_INTERRUPTED
    except Exception as exc:  # noqa: BLE001
        logger.error("Fatal error: {}", exc)
        return EXIT_FAILED
    logger.info("Done!")
    return EXIT_OK


def _prepare(variant: str, argv: Optional[Sequence[str]]) -> tuple[Settings, argparse.Namespace]:
    settings = load_settings()
    configure_logging(settings.log_level)
    parser = build_parser(variant, settings)
    args = parser.parse_args(argv)
    return apply_args(settings, args), args


def run_browser(argv: Optional[Sequence[str]] = None) -> int:
    from usage_tools.claude_client import ClaudeUsageClient

    settings, args = _prepare("browser", argv)
    logger.info("Claude Plan Usage Scraper starting...")
    client = ClaudeUsageClient(settings.browser)

    if args.login:
        try:
            client.login_only()
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return EXIT_INTERRUPTED
        except Exception as exc:  # noqa: BLE001
            logger.error("Login failed: {}", exc)
            return EXIT_FAILED
        return EXIT_OK

    return _execute(client.fetch, settings)


def run_api(argv: Optional[Sequence[str]] = None) -> int:
    from usage_tools.oauth_client import OAuthUsageClient

    settings, _ = _prepare("api", argv)
    logger.info("Claude Plan Usage API poller starting...")
    client = OAuthUsageClient(settings.oauth)
    return _execute(client.fetch, settings)


def main_browser() -> None:
    raise SystemExit(run_browser())


def main_api() -> None:
    raise SystemExit(run_api())
