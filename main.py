#!/usr/bin/env python

"""
Time Tracker API - Main Entry Point

A multi-user time tracking service: start/stop entries tagged with projects
and labels, and query totals bucketed by the caller's local day.

Usage:
    python main.py

Configuration comes from TIMEKEEPER_* environment variables, a .env file or
config/settings.yaml.
"""

import sys

import uvicorn

from timekeeper.api import configure_logging, create_app
from timekeeper.infra.config import get_settings


def main():
    """Main entry point"""
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
