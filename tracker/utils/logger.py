import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from tracker.config import Config

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries that log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore', 'discord.http', 'discord.gateway')


def _file_handler(prefix: str) -> logging.FileHandler:
    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(
        log_dir / f'{prefix}_{datetime.now():%Y%m%d}.log',
        encoding='utf-8'
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Get a logger writing to the console and a dated log file.

    Args:
        name: Logger name, normally the module's __name__
        log_file: File prefix; events loggers pass their own so they can be
            shipped separately from the application log
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = logging.DEBUG if Config.DEBUG else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console)
    logger.addHandler(_file_handler(log_file or 'stat_tracker'))

    if not Config.DEBUG:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
