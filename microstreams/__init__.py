"""
MicroStreams - A typed client layer for key-value store streams.

MicroStreams turns typed method calls into protocol-correct token
sequences for the stream commands (XADD, XTRIM, XCLAIM) and projects the
raw replies back into typed results. Transport is delegated to a
CommandExecutor: an in-memory store for tests and offline work, or a
redis-py client for a live server.

Usage:
    from microstreams import StreamClient, AddOptions, TrimOptions

    client = StreamClient.from_config()
    options = AddOptions().set_trim_options(
        TrimOptions.with_max_len(1000).set_nearly_exact_trimming())
    result = client.streams.xadd_with_options('events', [['kind', 'boot']], options)
    print(result.value())
"""

__version__ = '1.0.0'

from microstreams.client import StreamClient
from microstreams.config import Config
from microstreams.core import RawReply, Result
from microstreams.executors import CommandExecutor
from microstreams.options import (
    TriState, TrimOptions, AddOptions, ClaimOptions, BaseScanOptions, ZScanOptions,
)

__all__ = [
    '__version__',
    'StreamClient',
    'Config',
    'RawReply',
    'Result',
    'CommandExecutor',
    'TriState',
    'TrimOptions',
    'AddOptions',
    'ClaimOptions',
    'BaseScanOptions',
    'ZScanOptions',
]
