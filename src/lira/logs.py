"""
Logging setup for the lira package.

The ``lira`` logger is configured once on import from the environment:

- ``LIRA_DEBUG``: ``1``/``true``/``yes`` switches the console to DEBUG with
  logger names in every line.
- ``LIRA_LOG_LEVEL``: console level name, WARNING when unset.
- ``LIRA_LOG_DIR``: also write every record to ``lira.log`` in that directory.

The board is a library, so the console stays at WARNING unless asked.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "lira"
LOG_FILENAME = "lira.log"

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
VERBOSE_CONSOLE_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'


def _env_flag(name: str) -> bool:
    return os.getenv(name, '').lower() in ('1', 'true', 'yes')


def console_level() -> int:
    """Console level requested by the environment."""
    if _env_flag('LIRA_DEBUG'):
        return logging.DEBUG
    level_name = os.getenv('LIRA_LOG_LEVEL', '').upper()
    level = logging.getLevelName(level_name) if level_name else logging.WARNING
    # unknown names come back as "Level X" strings
    return level if isinstance(level, int) else logging.WARNING


def _file_handler(log_dir: Union[str, Path]) -> logging.Handler:
    log_path = Path(log_dir).expanduser()
    log_path.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path / LOG_FILENAME, encoding='utf-8')
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(level: Optional[int] = None,
                  log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    (Re)configure the ``lira`` logger.

    Args:
        level: Console level; the environment decides when None.
        log_dir: Directory for the detailed log file; ``LIRA_LOG_DIR`` when None.

    Returns:
        The configured ``lira`` logger.
    """
    if level is None:
        level = console_level()
    if log_dir is None:
        log_dir = os.getenv('LIRA_LOG_DIR') or None

    verbose = level <= logging.DEBUG
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT))
    console.setLevel(level)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)
    logger.addHandler(console)
    if log_dir is not None:
        logger.addHandler(_file_handler(log_dir))
    logger.propagate = False
    return logger


setup_logging()


def get_logger(name: str = None):
    """Get a logger under the ``lira`` namespace."""
    if name:
        return logging.getLogger(f'{LOGGER_NAME}.{name}')
    return logging.getLogger(LOGGER_NAME)
