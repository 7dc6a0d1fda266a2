"""Logging setup shared by the API process and the test-suite."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_ROOT_LOGGER = "hoa_billing"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_hoa_billing", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hoa_billing = True
        logger.addHandler(handler)

    return logger
