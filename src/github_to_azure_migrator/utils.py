"""
Utility functions for the GitHub to Azure DevOps migration tool.
"""

from __future__ import annotations

import logging

_CONSOLE_LEVELS: tuple[int, ...] = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(*, verbosity: int = 0, log_file: str = "migration.log") -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, info with one ``-v`` and debug with
    two. The log file always receives everything.
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(_CONSOLE_LEVELS[min(max(verbosity, 0), len(_CONSOLE_LEVELS) - 1)])

    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[console_handler, file_handler],
    )
