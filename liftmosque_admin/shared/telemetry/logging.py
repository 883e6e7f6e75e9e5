"""Logging configuration for the console core."""

import logging
import sys

from liftmosque_admin.core.config import Settings, get_settings

# Loggers of HTTP libraries that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Settings | None = None) -> None:
    """Configure process-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO. Output goes to
    stdout. HTTP client request logs are kept at WARNING so that live
    subscription polling does not flood the output.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
