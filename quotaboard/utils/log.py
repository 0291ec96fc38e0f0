"""Logging helpers.

Every component logs through ``log_with_timestamp`` with a bracketed
prefix naming the component (e.g. "[QuotaLoader]"). Messages go to the
``quotaboard`` logger so that the host application decides where they
end up; ``setup_debug_logging`` is the convenience configuration used
while troubleshooting.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "quotaboard"

_logger = logging.getLogger(LOGGER_NAME)


def log_with_timestamp(message: str, prefix: str = "", level: int = logging.DEBUG):
    """
    Emit a log message on the quotaboard logger.

    The timestamp is added by the logging formatter.

    Args:
        message: The log message
        prefix: Optional prefix (e.g., "[QuotaStore]", "[EventBus]")
        level: logging level, DEBUG unless the caller is reporting a problem
    """
    if prefix:
        _logger.log(level, "%s %s", prefix, message)
    else:
        _logger.log(level, "%s", message)


def setup_debug_logging(log_file_path: Optional[Path] = None) -> None:
    """
    Set up comprehensive debug logging.

    - Configures structured logging with timestamps
    - Adds a file handler when a log file path is given
    - Sets module levels (aiohttp at DEBUG, asyncio at INFO)

    Args:
        log_file_path: Optional path to log file for file handler
    """
    os.environ['PYTHONASYNCIODEBUG'] = '1'

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file_path:
        try:
            file_handler = logging.FileHandler(log_file_path, encoding='utf-8', mode='a')
            file_handler.setLevel(logging.DEBUG)
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file handler: {e}", file=sys.stderr)

    # Format: timestamp [level] module: message
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
        force=True
    )

    logging.getLogger('aiohttp').setLevel(logging.DEBUG)
    logging.getLogger('aiohttp.client').setLevel(logging.DEBUG)
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)

    # Transport-level asyncio debug output is too noisy at DEBUG
    logging.getLogger('asyncio').setLevel(logging.INFO)
