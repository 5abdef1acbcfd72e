"""Console/file logging for the chamber_potency scripts and API process."""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler (plus an optional file handler) to the package logger.

    Calling it again replaces the handlers installed by the previous call, so
    reloading the API or re-running a script never doubles log lines.
    """
    root = logging.getLogger("chamber_potency")
    root.setLevel(level)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.debug("chamber_potency logging at level %s", logging.getLevelName(level))
    return root
