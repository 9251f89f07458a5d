"""
Stream Commands Example for MicroStreams

Demonstrates the typed stream commands against the in-memory executor.

Use Case: Sensor Event Queue
- Append readings with an approximate retention cap
- Hand stuck readings over to another worker with XCLAIM
- Trim the stream by minimum id

Run against a server instead with:
    MICROSTREAMS_EXECUTOR=redis python examples/streams_example.py
"""

import time

from microstreams import (
    AddOptions, ClaimOptions, Config, StreamClient, TrimOptions,
)
from microstreams.log import init_logger

STREAM = 'sensor:living_room'
GROUP = 'processors'


def append_readings(client):
    """Example: appending readings with a retention cap."""
    print('=' * 60)
    print('Example 1: Appending readings')
    print('=' * 60)

    options = AddOptions().set_trim_options(
        TrimOptions.with_max_len(100).set_nearly_exact_trimming())

    ids = []
    for i in range(5):
        result = client.streams.xadd_with_options(STREAM, [
            ['temperature', f'{20 + i * 0.5:.1f}'],
            ['humidity', str(60 + i * 2)],
        ], options)
        ids.append(result.value())
        print(f'  [{result.value()}] reading {i}')
        time.sleep(0.002)

    missing = client.streams.xadd_with_options(
        'sensor:attic', [['temperature', '18.0']], AddOptions().set_dont_make_new_stream())
    print(f'\n  Attic stream missing, entry skipped: {missing.is_nil()}')
    return ids


def reassign_pending(client, ids):
    """Example: claiming entries from a stalled consumer."""
    print('\n' + '=' * 60)
    print('Example 2: Claiming pending readings')
    print('=' * 60)

    executor = client.executor
    executor.execute('XGROUP', ['CREATE', STREAM, GROUP, '0', 'MKSTREAM'])
    executor.execute('XREADGROUP', ['GROUP', GROUP, 'worker-1', 'STREAMS', STREAM, '>'])

    claimed = client.streams.xclaim(STREAM, GROUP, 'worker-2', 0, ids[:2])
    for entry_id, pairs in claimed.items():
        print(f'  worker-2 now owns {entry_id}: {pairs}')

    options = ClaimOptions().set_idle_time(0).set_retry_count(3)
    just_ids = client.streams.xclaim_just_id_with_options(STREAM, GROUP, 'worker-3', 0, ids[2:], options)
    print(f'  worker-3 now owns {just_ids}')


def trim_history(client, ids):
    """Example: trimming everything older than a given id."""
    print('\n' + '=' * 60)
    print('Example 3: Trimming by minimum id')
    print('=' * 60)

    deleted = client.streams.xtrim(STREAM, TrimOptions.with_min_id(ids[3]).set_exact_trimming())
    print(f'  Deleted {deleted} entries older than {ids[3]}')


def main():
    config = Config.from_env()
    init_logger(config.get('log_level'))

    with StreamClient.from_config(config) as client:
        ids = append_readings(client)
        reassign_pending(client, ids)
        trim_history(client, ids)


if __name__ == '__main__':
    main()
