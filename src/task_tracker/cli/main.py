# src/task_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging from settings, then hands over to the Typer app.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..logging_setup import setup_logging
from .commands import app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    setup_logging(log_dir=settings.log_dir, console_level=console_level)
    logger.debug("Starting %s db=%s", settings.app_name, settings.db_path)

    app(prog_name=settings.app_name)


if __name__ == "__main__":
    main()
