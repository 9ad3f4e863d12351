"""
Error logging configuration for the configuration registry.

This module owns the dedicated logger that records configuration errors
so startup failures can be inspected after the process has exited.
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


ERROR_LOG_NAME = "config_errors.log"


def setup_error_logger(log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Set up the system error logger.

    Without a log directory the logger only propagates to the root logger.
    With one, a rotating file handler is attached (once per file).

    Args:
        log_dir: Directory that receives the error log file

    Returns:
        The configured system error logger
    """
    system_logger = logging.getLogger('errors.system')
    system_logger.setLevel(logging.ERROR)

    if log_dir is None:
        return system_logger

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = (log_path / ERROR_LOG_NAME).resolve()

    for handler in system_logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_file:
            return system_logger

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    system_handler = RotatingFileHandler(
        log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    system_handler.setFormatter(detailed_formatter)
    system_logger.addHandler(system_handler)

    return system_logger


# Create singleton instance
system_error_logger = setup_error_logger()
