"""Logging helpers shared by livepulse modules."""

import logging

_ROOT_LOGGER = "livepulse"

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger, nesting third-party names under ``livepulse``.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        The logger for ``name``.
    """
    if name == _ROOT_LOGGER or name.startswith(f"{_ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the livepulse root logger.

    Calling this more than once replaces the level but never stacks handlers.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level.upper())
    if not any(getattr(h, "_livepulse", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        handler._livepulse = True  # type: ignore[attr-defined]
        logger.addHandler(handler)


def log_exception(message: str, **attributes: str | int | float | bool) -> None:
    """Log the exception currently being handled at ERROR level.

    Must be called from inside an ``except`` block.

    Args:
        message: The log message
        **attributes: Additional structured fields, passed as ``extra``
    """
    get_logger(_ROOT_LOGGER).exception(message, extra=attributes)
