"""
MicroStreams Client

Facade combining the command families over a single executor.

Usage:
    from microstreams import StreamClient, Config

    client = StreamClient.from_config(Config({'executor': 'memory'}))
    entry_id = client.streams.xadd('myStream', [['field1', 'value1']])

    # Against a server
    client = StreamClient.from_config(Config({'executor': 'redis',
                                              'url': 'redis://localhost:6379'}))
"""

import logging

from microstreams.commands import ReplyDecoder, StreamCommands, SortedSetCommands
from microstreams.config import Config
from microstreams.executors.memory import MemoryExecutor
from microstreams.executors.redis_executor import RedisExecutor

logger = logging.getLogger(__name__)


class StreamClient:
    """
    Entry point for callers.

    Attributes:
        executor: CommandExecutor - Shared by all command families
        streams: StreamCommands
        sorted_sets: SortedSetCommands
    """

    __slots__ = ('executor', 'streams', 'sorted_sets')

    def __init__(self, executor, encoding='utf-8', decode_errors='strict'):
        decoder = ReplyDecoder(encoding, decode_errors)
        self.executor = executor
        self.streams = StreamCommands(executor, decoder)
        self.sorted_sets = SortedSetCommands(executor, decoder)

    @classmethod
    def from_config(cls, config=None):
        """
        Build a client from configuration.

        Args:
            config: Config - Defaults to Config() (in-memory executor)
        """
        config = (config or Config()).validate()

        if config.get('executor') == 'redis':
            executor = RedisExecutor.from_url(config.get('url'),
                                              socket_timeout=config.get('socket_timeout'))
        else:
            executor = MemoryExecutor()

        logger.info('Using %s executor', config.get('executor'))
        return cls(executor, config.get('encoding'), config.get('decode_errors'))

    def close(self):
        """Release executor resources, if it holds any."""
        close = getattr(self.executor, 'close', None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False
