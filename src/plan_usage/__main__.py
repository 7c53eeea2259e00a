#!/usr/bin/env python3
"""CLI entrypoint for the claude.ai usage scraper."""

from __future__ import annotations

from plan_usage.cli import main_browser

if __name__ == "__main__":
    main_browser()
