# progress_hub/core/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a single stream handler on the package logger.

    Calling this more than once (e.g. one app per test) only adjusts the level.
    """
    log = logging.getLogger("progress_hub")
    log.setLevel(level.upper())
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log
