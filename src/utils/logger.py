"""
Logging setup for scripts and the service layer.

Every module logs through logging.getLogger(__name__), so all loggers
live under "src". Configuring that one logger (console, plus an optional
rotating file) covers the whole package.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn "info" / "DEBUG" / logging.INFO into a numeric level.

    Raises:
        ValueError: If the name is not a logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logger(
    name: str = "src",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Attach console (and optionally file) output to a logger.

    Calling it again for the same name returns the logger unchanged.

    Args:
        name: Logger to configure; "src" covers every module
        level: Level as number or name, e.g. config.log_level
        log_file: Rotating log file (5MB x 3), e.g. config.log_file

    Examples:
        >>> logger = setup_logger(level=config.log_level, log_file=config.log_file)
        >>> logger.info("Report started")
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(resolve_level(level))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
