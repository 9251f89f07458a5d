"""
MicroStreams redis-py Executor

Runs commands on a redis.Redis client. Commands are written straight to a
pooled connection so redis-py's per-command response callbacks do not
reshape the reply; the native reply is then converted into a RawReply.

Error mapping:
- Error replies (redis.exceptions.ResponseError) become Error RawReplies,
  with the error code restored for the classes redis-py strips it from.
- Connection and timeout errors propagate unchanged.
"""

import logging

import redis
from redis.exceptions import (
    ConnectionError, ExecAbortError, NoPermissionError, NoScriptError,
    OutOfMemoryError, ReadOnlyError, ResponseError, TimeoutError,
)

from microstreams.core import reply
from microstreams.executors import CommandExecutor

logger = logging.getLogger(__name__)


def convert_reply(value):
    """
    Convert a redis-py parser value into a RawReply.

    Type mapping:
    - None -> Nil
    - bool/int -> Integer
    - bytes/str -> BulkString (RESP2 parsers do not keep status lines apart)
    - float -> BulkString in the store's textual form
    - list/tuple/set -> Array
    - dict -> Map (parser order)
    """
    if value is None:
        return reply.nil()
    if isinstance(value, (bool, int)):
        return reply.integer(value)
    if isinstance(value, (bytes, str)):
        return reply.bulk_string(value)
    if isinstance(value, float):
        return reply.bulk_string(repr(value))
    if isinstance(value, (list, tuple, set)):
        return reply.array([convert_reply(item) for item in value])
    if isinstance(value, dict):
        return reply.mapping((convert_reply(k), convert_reply(v)) for k, v in value.items())
    if isinstance(value, ResponseError):
        return _error_reply(value)
    raise TypeError(f'Cannot convert type {type(value).__name__} to a reply')


# redis-py strips the code of every error class it maps from the message
ERROR_CODES = (
    (ReadOnlyError, 'READONLY'),
    (NoScriptError, 'NOSCRIPT'),
    (ExecAbortError, 'EXECABORT'),
    (NoPermissionError, 'NOPERM'),
    (OutOfMemoryError, 'OOM'),
)


def _error_reply(exc):
    message = str(exc)
    for error_class, code in ERROR_CODES:
        if isinstance(exc, error_class):
            return reply.error(f'{code} {message}')
    head = message.split(' ', 1)[0]
    if not head.isupper():
        message = f'ERR {message}'
    return reply.error(message)


class RedisExecutor(CommandExecutor):
    """
    CommandExecutor backed by a redis-py client.

    Usage:
        executor = RedisExecutor.from_url('redis://localhost:6379')
        executor.execute('XADD', ['mystream', '*', 'field', 'value'])
    """

    __slots__ = ('_client',)

    def __init__(self, client):
        """
        Args:
            client: redis.Redis - Client whose connection pool is used
        """
        self._client = client

    @classmethod
    def from_url(cls, url, socket_timeout=None):
        """Build an executor with its own redis.Redis client."""
        return cls(redis.Redis.from_url(url, socket_timeout=socket_timeout))

    @property
    def client(self):
        return self._client

    def execute(self, command, args):
        pool = self._client.connection_pool
        connection = pool.get_connection()
        try:
            connection.send_command(command, *args)
            response = connection.read_response()
        except ResponseError as e:
            return _error_reply(e)
        except (ConnectionError, TimeoutError):
            logger.warning('%s: connection failed, disconnecting', command)
            connection.disconnect()
            raise
        finally:
            pool.release(connection)
        return convert_reply(response)

    def close(self):
        self._client.close()
