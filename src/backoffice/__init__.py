"""Back-office calculators: commissions, stock ledger, and overdue interest.

Importing the package sets up the shared ``backoffice`` logger. Every module
logs through ``from . import log``. Records at INFO and above go to a rotating
file under ``.logs/``. Only warnings and errors reach stderr, so CLI output
stays readable.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR = PROJECT_ROOT / ".logs"
LOG_FILE = LOG_DIR / "backoffice.log"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUPS = 5


def _configure_logging() -> logging.Logger:
    logger = logging.getLogger(__name__)
    # re-imports must not stack duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        print(f"Warning: file logging disabled, cannot open '{LOG_FILE}': {exc}", file=sys.stderr)
    else:
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


log = _configure_logging()
log.info("Back-office logging ready (file: %s)", LOG_FILE)
