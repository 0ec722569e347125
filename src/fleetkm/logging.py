"""Logging configuration for fleetkm."""

import logging
from pathlib import Path

import platformdirs


def setup_logging() -> None:
    """Configure logging with file handler for debug output.

    Logs go to the platform config directory (e.g. ~/.config/fleetkm/debug.log).
    Console output is handled separately by Rich; this is the debug file only.
    """
    logger = logging.getLogger("fleetkm")
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return

    try:
        log_dir = Path(platformdirs.user_config_dir("fleetkm", ensure_exists=True))
        log_file = log_dir / "debug.log"
        fh = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        # Unwritable config dir: no debug log.
        logger.addHandler(logging.NullHandler())
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(fh)

    logger.debug("Logging initialized → %s", log_file)
