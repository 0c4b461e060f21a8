from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "reqspec"
_FORMAT = "%(levelname)s %(name)s: %(message)s"


def to_logging_level(level: str | int) -> int:
    """
    Converts a level name such as `debug` or `WARNING` into a logging level.

    Args:
        level (str | int): A level name, in any letter case, or a numeric level.

    Returns:
        int: The numeric logging level.

    Raises:
        ValueError: If the name is not a known logging level.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(dest: list[str], level: str | int = logging.WARNING) -> logging.Logger:
    """
    Configures the `reqspec` logger for command line use.

    Existing handlers of the logger are removed first, so calling this again replaces the
    previous configuration.

    Args:
        dest (list[str]): Where to send log records. Supported destinations:
            - "stdout": the standard output.
            - "stderr": the standard error.
            - "file:<path>": a file at `<path>`, appended to.
        level (str | int): The minimum level to emit. Defaults to WARNING, which shows marker
            diagnostics.

    Returns:
        logging.Logger: The configured logger.

    Raises:
        ValueError: If a destination or the level is not recognized.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(to_logging_level(level))
    logger.propagate = False
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    for d in dest:
        handler: logging.Handler
        if d == "stdout":
            handler = logging.StreamHandler(sys.stdout)
        elif d == "stderr":
            handler = logging.StreamHandler(sys.stderr)
        elif d.startswith("file:"):
            path = d[len("file:"):]
            handler = logging.FileHandler(path)
        else:
            raise ValueError(f"Unknown log destination: {d}")

        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)

    return logger
