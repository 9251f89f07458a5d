"""
Test suite for MicroStreams configuration, client wiring, logging and
the shared reply/result/error types.
"""

import logging

import pytest

from microstreams import Config, StreamClient
from microstreams.core import reply
from microstreams.core.result import Result
from microstreams.exceptions import InvalidArgumentError, ReplyError, StreamIdError
from microstreams.executors.memory import MemoryExecutor
from microstreams.executors.redis_executor import RedisExecutor
from microstreams.log import init_logger


# =============================================================================
# Config
# =============================================================================

def test_config_defaults_and_unknown_keys():
    config = Config({'executor': 'redis', 'bogus': 1})
    assert config.get('executor') == 'redis'
    assert config.get('bogus') is None
    assert config.get('encoding') == 'utf-8'

    assert config.set('url', 'redis://cache:6379') is True
    assert config.set('bogus', 1) is False
    assert config.get_all()['url'] == 'redis://cache:6379'
    assert config.get_matching('socket*') == {'socket_timeout': None}


def test_config_from_env():
    config = Config.from_env({
        'MICROSTREAMS_EXECUTOR': 'redis',
        'MICROSTREAMS_SOCKET_TIMEOUT': '2.5',
        'UNRELATED': 'x',
    })
    assert config.get('executor') == 'redis'
    assert config.get('socket_timeout') == 2.5
    assert config.get('url') == 'redis://localhost:6379'


@pytest.mark.parametrize('values', [
    {'executor': 'sqlite'},
    {'encoding': 'no-such-codec'},
    {'socket_timeout': 0},
])
def test_config_validate_rejects(values):
    with pytest.raises(InvalidArgumentError):
        Config(values).validate()


# =============================================================================
# Client
# =============================================================================

def test_client_from_config_memory():
    client = StreamClient.from_config()
    assert isinstance(client.executor, MemoryExecutor)

    result = client.streams.xadd('s', [['f', 'v']])
    assert not result.is_nil()
    client.close()


def test_client_from_config_redis():
    with StreamClient.from_config(Config({'executor': 'redis',
                                          'url': 'redis://localhost:6391'})) as client:
        assert isinstance(client.executor, RedisExecutor)


def test_client_decode_errors_setting():
    executor = MemoryExecutor()
    client = StreamClient(executor, encoding='ascii', decode_errors='replace')
    executor.execute('XADD', ['s', '1-0', 'f', 'v'])
    executor.execute('XGROUP', ['CREATE', 's', 'g', '0'])
    executor.execute('XREADGROUP', ['GROUP', 'g', 'c', 'STREAMS', 's', '>'])
    assert client.streams.xclaim_just_id('s', 'g', 'c', 0, ['1-0']) == ['1-0']


# =============================================================================
# Logging
# =============================================================================

def test_init_logger_is_idempotent():
    logger = init_logger('DEBUG')
    handlers = list(logger.handlers)
    assert init_logger('INFO') is logger
    assert logger.handlers == handlers
    assert logger.level == logging.INFO


# =============================================================================
# Replies, results and errors
# =============================================================================

def test_from_python_conversion():
    assert reply.from_python(None) == reply.nil()
    assert reply.simple_string('OK') is reply.OK_REPLY
    assert reply.simple_string('QUEUED').kind == 'simple_string'
    assert reply.from_python(['1-0', [b'f', 3]]) == reply.array([
        reply.bulk_string('1-0'),
        reply.array([reply.bulk_string(b'f'), reply.integer(3)]),
    ])
    assert reply.from_python({'a': 'b'}).kind == 'map'
    assert reply.from_python(ValueError('ERR nope')) == reply.error('ERR nope')
    with pytest.raises(TypeError):
        reply.from_python(1.5)
    with pytest.raises(ValueError):
        reply.RawReply('double', 1.5)


def test_result_present_and_absent():
    assert Result.of('1-0') != Result.nil()
    assert Result.of('1-0').value_or('x') == '1-0'
    assert Result.nil().is_nil()
    assert repr(Result.nil()) == 'Result(nil)'


def test_error_prefixes():
    error = ReplyError('WRONGTYPE Operation against a key holding the wrong kind of value')
    assert error.prefix == 'WRONGTYPE'
    assert error.message == 'Operation against a key holding the wrong kind of value'

    error = ReplyError('something broke')
    assert error.prefix == 'ERR'
    assert str(error) == 'something broke'

    assert StreamIdError().to_reply() == reply.error(
        'ERR Invalid stream ID specified as stream command argument')
