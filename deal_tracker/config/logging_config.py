# deal_tracker/config/logging_config.py

"""Per-run timestamped logging configuration for deal_tracker.

Each launch of the host process creates a dedicated log file inside
``logs/``, named with the launch timestamp (e.g.
``logs/run_20261019_153045.log``).  All ``deal_tracker.*`` loggers route
through this file handler, and so does the uvicorn server logger when the
proxy is served, so one run's tracking passes, deal refreshes and proxy
requests land in one place.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from deal_tracker.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(name)s] "
    "%(module)s.%(funcName)s:%(lineno)d %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SERVER_LOGGER = "uvicorn"


def setup_logging(level: int = logging.WARNING) -> Path:
    """Initialise the root ``deal_tracker`` logger for the current run.

    Args:
        level: Threshold for the console handler. The file handler
            always records DEBUG and above.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger("deal_tracker")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, --schedule restarts) keep the first handlers
    if root_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    logging.getLogger(SERVER_LOGGER).addHandler(file_handler)

    root_logger.info(
        "Logging initialised (console level %s), log file: %s",
        logging.getLevelName(level),
        log_file,
    )
    return log_file
