"""
Logging configuration for the WRP decoder tools.
Provides consistent logging setup across the command line entry points.
"""
import logging
from pathlib import Path
from typing import Optional


def setup_logging(
    output_dir: Optional[Path],
    debug: bool = False,
    name: str = 'wrp_decoder',
    console_level: Optional[int] = None
) -> logging.Logger:
    """
    Set up logging configuration

    The logger is the package root, so per-class parser loggers
    (children named after the parser) propagate into its handlers.

    Args:
        output_dir: Directory for log files, None for console only
        debug: Enable debug logging
        name: Logger name, also used for the log file name
        console_level: Console threshold, defaults to DEBUG/INFO per debug

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Clear any existing handlers
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    if output_dir is not None:
        logs_dir = Path(output_dir) / 'logs'
        logs_dir.mkdir(parents=True, exist_ok=True)

        log_path = logs_dir / f'{name}.log'
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s [%(levelname)s] %(message)s')
        )
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    if console_level is None:
        console_level = logging.DEBUG if debug else logging.INFO

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter('[%(levelname)s] %(message)s')
    )
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package root

    Args:
        name: Logger name (usually a class name)

    Returns:
        Logger instance
    """
    if name.startswith('wrp_decoder'):
        return logging.getLogger(name)
    return logging.getLogger(f'wrp_decoder.{name}')


def log_exception(
    logger: logging.Logger,
    message: str,
    exc_info: Optional[Exception] = None
) -> None:
    """
    Log an exception with consistent formatting

    Args:
        logger: Logger instance
        message: Error message
        exc_info: Optional exception info
    """
    if exc_info:
        logger.error(f"{message}: {exc_info}", exc_info=True)
    else:
        logger.error(message)
