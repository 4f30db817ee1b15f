"""Logging configuration for the ``rectone`` package.

All modules log through children of the ``rectone`` logger
(``rectone.selector``, ``rectone.remote`` ...). Console output goes to
stderr; an optional per-run file captures everything at DEBUG.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(debug: bool = False, logs_dir: Optional[Path] = None) -> Optional[Path]:
    """Initialise the root ``rectone`` logger.

    Args:
        debug: Emit DEBUG records on the console instead of WARNING+.
        logs_dir: When given, also write a timestamped run log there.

    Returns:
        The path of the run log file, or ``None`` when only the console is used.
    """
    root_logger = logging.getLogger("rectone")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, reloads) must not stack handlers
    if root_logger.handlers:
        return None

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    log_file = None
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"run_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
        )
        root_logger.addHandler(file_handler)
        root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
