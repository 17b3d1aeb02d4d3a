"""
Utility functions for the Redmine to GitLab migration tool.
"""

from __future__ import annotations

import logging

LOG_FILE = "migration.log"
_CONSOLE_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(*, verbosity: int = 0) -> None:
    """Configure logging for the migration process.

    The log file always receives debug output. The console shows warnings by
    default, info with verbosity 1 and debug from verbosity 2 on.
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(_CONSOLE_LEVELS[min(max(verbosity, 0), len(_CONSOLE_LEVELS) - 1)])

    file_handler = logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[console_handler, file_handler],
    )
    # Keep HTTP client internals out of the debug log
    logging.getLogger("urllib3").setLevel(logging.INFO)
