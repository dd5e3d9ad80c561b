"""Logging configuration"""

import logging
import sys
from pathlib import Path
from pythonjsonlogger import jsonlogger

ROOT_LOGGER = 'microgrid_notifier'


def _build_formatter(log_format):
    if log_format == 'json':
        return jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'name': 'logger', 'asctime': 'timestamp'}
        )
    return logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )


def setup_logger(config):
    """
    Setup the package logger from the ``service`` config section

    ``log_levels`` maps module paths below the package (for example
    ``feeds.thingspeak_feed`` or ``alerts``) to their own level, so a single
    noisy module can be raised to DEBUG without flooding the rest.

    Args:
        config: Configuration dictionary with logging settings
    """
    service = config.get('service', {})
    log_level = service.get('log_level', 'INFO').upper()
    log_file = service.get('log_file')
    formatter = _build_formatter(service.get('log_format', 'text'))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    logger.handlers.clear()

    # Handlers pass everything through, logger levels decide what is emitted
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    for module, level in (service.get('log_levels') or {}).items():
        get_logger(module).setLevel(getattr(logging, str(level).upper(), logging.INFO))

    return logger


def get_logger(name):
    """Get logger instance"""
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')
