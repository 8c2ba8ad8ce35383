# app/core/logging.py
import logging
import sys
from typing import Iterable, Optional, Union

import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# httpx logs every request line at INFO (one per store call and provider stream),
# openai echoes request options at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def resolve_level(level: Union[int, str, None], debug: bool = False) -> int:
    """LOG_LEVEL wins when set ("debug", "WARNING", 10...), else DEBUG flag, else INFO."""
    if level is None or level == "":
        return logging.DEBUG if debug else logging.INFO
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: Union[int, str, None] = logging.INFO,
    *,
    debug: bool = False,
    quiet: Optional[Iterable[str]] = QUIET_LOGGERS,
) -> int:
    level = resolve_level(level, debug)

    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    # Libraries log at WARNING or above, or at the app level if that is stricter
    for name in quiet or ():
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
