"""
MicroStreams Configuration Module

Provides configuration management for the MicroStreams client: which
executor to use, where to connect, and how reply payloads are decoded.
"""

import os

from microstreams.core.constants import DEFAULT_URL, DEFAULT_ENCODING
from microstreams.exceptions import InvalidArgumentError
from microstreams.utils import glob_match as _match_pattern


ENV_PREFIX = 'MICROSTREAMS_'

# Default configuration values
DEFAULT_CONFIG = {
    # Executor
    'executor': 'memory',  # 'memory' (in-process store) or 'redis' (redis-py)
    'url': DEFAULT_URL,
    'socket_timeout': None,  # Seconds, None = block

    # Reply decoding
    'encoding': DEFAULT_ENCODING,
    'decode_errors': 'strict',  # Codec error handler for bulk strings

    # Logging
    'log_level': 'WARNING',
}

EXECUTORS = ('memory', 'redis')


class Config:
    """
    Configuration manager for MicroStreams.

    Provides get/set access to configuration values with validation.
    Unknown keys are ignored.
    """

    __slots__ = ('_config',)

    def __init__(self, initial_config=None):
        """
        Initialize configuration with defaults.

        Args:
            initial_config: dict - Optional values merged over the defaults
        """
        self._config = dict(DEFAULT_CONFIG)
        if initial_config:
            for key, value in initial_config.items():
                if key in DEFAULT_CONFIG:
                    self._config[key] = value

    @classmethod
    def from_env(cls, environ=None):
        """
        Build configuration from MICROSTREAMS_* environment variables.

        Example: MICROSTREAMS_EXECUTOR=redis MICROSTREAMS_URL=redis://cache:6379
        """
        environ = os.environ if environ is None else environ
        values = {}
        for key in DEFAULT_CONFIG:
            raw = environ.get(ENV_PREFIX + key.upper())
            if raw is None:
                continue
            if key == 'socket_timeout':
                values[key] = float(raw) if raw else None
            else:
                values[key] = raw
        return cls(values)

    def get(self, key, default=None):
        return self._config.get(key, default)

    def set(self, key, value):
        """
        Set configuration value.

        Returns:
            bool: True if key exists and was set, False if unknown key
        """
        if key in DEFAULT_CONFIG:
            self._config[key] = value
            return True
        return False

    def get_all(self):
        """Return a copy of all configuration values."""
        return dict(self._config)

    def get_matching(self, pattern):
        """
        Get configuration values whose key matches a glob pattern.
        """
        return {key: value for key, value in self._config.items()
                if _match_pattern(pattern, key)}

    def validate(self):
        """
        Check configuration consistency.

        Raises:
            InvalidArgumentError: on an unsupported executor, encoding or timeout
        """
        executor = self._config['executor']
        if executor not in EXECUTORS:
            raise InvalidArgumentError(
                f"unsupported executor '{executor}', expected one of {', '.join(EXECUTORS)}")

        try:
            ''.encode(self._config['encoding'])
        except LookupError:
            raise InvalidArgumentError(f"unknown encoding '{self._config['encoding']}'")

        timeout = self._config['socket_timeout']
        if timeout is not None and timeout <= 0:
            raise InvalidArgumentError('socket_timeout must be positive')

        return self
