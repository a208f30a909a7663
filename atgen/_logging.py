"""
Diagnostics for the generator.

Standard output carries the generated module, so every message goes
through the "atgen" logger. The library itself only installs a
NullHandler; the command line routes the logger to stderr.
"""
import logging
import sys
from typing import Optional

LOGGER_NAME = "atgen"
LOG_FORMAT = "[%(levelname)s] atgen: %(message)s"

logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())


def reset_logging() -> None:
    """Drop every handler installed by ``configure_logging``."""
    logger.setLevel(logging.NOTSET)
    for h in logger.handlers[:]:
        if not isinstance(h, logging.NullHandler):
            logger.removeHandler(h)


def configure_logging(
    level: int = logging.WARNING,
    handler: Optional[logging.Handler] = None,
) -> None:
    """
    Send generator diagnostics to ``handler`` (default: stderr).

    Calling it again replaces the previous handler.
    """
    reset_logging()
    logger.setLevel(level)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Child logger ``atgen.<name>`` for a submodule."""
    return logger.getChild(name)
