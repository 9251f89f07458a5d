"""
MicroStreams Logging Setup

Library modules log through logging.getLogger(__name__) and never touch
handlers. Applications and examples call init_logger() to get output.
"""

import logging
import sys

LOGGER_NAME = 'microstreams'


def init_logger(level='WARNING'):
    """
    Idempotently attach a stdout handler to the 'microstreams' logger.

    Args:
        level: str or int - Log level name ('DEBUG', 'INFO', ...) or value

    Returns:
        logging.Logger: the package logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if getattr(logger, '_microstreams_inited', False):
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s - %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S%z',
    ))
    logger.addHandler(handler)
    logger.propagate = False

    logger._microstreams_inited = True
    logger.debug('Logger initialized')
    return logger
