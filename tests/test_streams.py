"""
Test suite for the MicroStreams stream command surface

Covers token assembly, reply projection and error propagation against a
recording executor, plus end-to-end scenarios on MemoryExecutor.
"""

import pytest

from microstreams import StreamClient
from microstreams.commands import StreamCommands, SortedSetCommands
from microstreams.core import reply
from microstreams.core.result import Result
from microstreams.exceptions import (
    DecodingError, EncodingError, InvalidArgumentError, ReplyError,
)
from microstreams.executors import CommandExecutor
from microstreams.executors.memory import MemoryExecutor
from microstreams.options import AddOptions, ClaimOptions, TrimOptions, ZScanOptions


class RecordingExecutor(CommandExecutor):
    """Executor returning canned replies and recording every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def execute(self, command, args):
        self.calls.append((command, list(args)))
        return self.replies.pop(0)


class FailingExecutor(CommandExecutor):
    """Executor whose transport always fails."""

    def execute(self, command, args):
        raise ConnectionError('connection reset by peer')


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, now=1000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


def entry(entry_id, *tokens):
    return reply.array([
        reply.bulk_string(entry_id),
        reply.array([reply.bulk_string(t) for t in tokens]),
    ])


# =============================================================================
# XADD
# =============================================================================

def test_xadd_sends_key_auto_id_and_pairs():
    executor = RecordingExecutor(reply.bulk_string('1526919030474-55'))
    streams = StreamCommands(executor)

    result = streams.xadd('myStream', [['field1', 'value1'], ['field2', 'value2']])

    assert executor.calls == [
        ('XADD', ['myStream', '*', 'field1', 'value1', 'field2', 'value2']),
    ]
    assert not result.is_nil()
    assert result.value() == '1526919030474-55'


def test_xadd_with_options_places_option_tokens_before_pairs():
    executor = RecordingExecutor(reply.bulk_string('100-500'))
    streams = StreamCommands(executor)
    options = (AddOptions()
               .set_id('100-500')
               .set_dont_make_new_stream()
               .set_trim_options(TrimOptions.with_max_len(1000).set_nearly_exact_trimming()))

    result = streams.xadd_with_options('myStream', [['f', 'v']], options)

    assert executor.calls == [
        ('XADD', ['myStream', 'NOMKSTREAM', 'MAXLEN', '~', '1000', '100-500', 'f', 'v']),
    ]
    assert result == Result.of('100-500')


def test_xadd_nil_reply_is_absent_result():
    streams = StreamCommands(RecordingExecutor(reply.nil()))
    result = streams.xadd_with_options('missing', [['f', 'v']],
                                       AddOptions().set_dont_make_new_stream())
    assert result.is_nil()
    assert result.value() is None
    assert result.value_or('none') == 'none'


def test_xadd_decodes_bytes_reply():
    streams = StreamCommands(RecordingExecutor(reply.bulk_string(b'5-0')))
    assert streams.xadd('s', [['f', 'v']]).value() == '5-0'


def test_xadd_does_not_check_pair_arity():
    executor = RecordingExecutor(reply.error('ERR wrong number of arguments for \'xadd\' command'))
    streams = StreamCommands(executor)

    with pytest.raises(ReplyError):
        streams.xadd('s', [['lonely']])

    assert executor.calls == [('XADD', ['s', '*', 'lonely'])]


# =============================================================================
# XTRIM
# =============================================================================

def test_xtrim_returns_deleted_count():
    executor = RecordingExecutor(reply.integer(3))
    streams = StreamCommands(executor)

    deleted = streams.xtrim('s', TrimOptions.with_max_len(2).set_exact_trimming())

    assert deleted == 3
    assert executor.calls == [('XTRIM', ['s', 'MAXLEN', '=', '2'])]


# =============================================================================
# XCLAIM
# =============================================================================

def test_xclaim_default_options_tokens_and_order():
    executor = RecordingExecutor(reply.array([
        entry('2-0', 'b', '2'),
        entry('1-0', 'a', '1', 'c', '3'),
    ]))
    streams = StreamCommands(executor)

    claimed = streams.xclaim('s', 'g', 'c', 0, ['1-0', '2-0'])

    assert executor.calls == [('XCLAIM', ['s', 'g', 'c', '0', '1-0', '2-0'])]
    assert list(claimed) == ['2-0', '1-0']
    assert claimed['1-0'] == [['a', '1'], ['c', '3']]
    assert claimed['2-0'] == [['b', '2']]


def test_xclaim_with_options_appends_option_tokens_after_ids():
    executor = RecordingExecutor(reply.array([]))
    streams = StreamCommands(executor)
    options = ClaimOptions().set_idle_time(5).set_retry_count(3).set_force()

    assert streams.xclaim_with_options('s', 'g', 'c', 10, ['1-0'], options) == {}
    assert executor.calls == [
        ('XCLAIM', ['s', 'g', 'c', '10', '1-0', 'IDLE', '5', 'RETRYCOUNT', '3', 'FORCE']),
    ]


def test_xclaim_just_id_appends_justid_after_options():
    executor = RecordingExecutor(
        reply.array([reply.bulk_string('1-0'), reply.bulk_string(b'3-0')]),
        reply.array([]),
    )
    streams = StreamCommands(executor)

    ids = streams.xclaim_just_id_with_options(
        's', 'g', 'c', 0, ['1-0', '3-0'], ClaimOptions().set_force())
    assert ids == ['1-0', '3-0']

    assert streams.xclaim_just_id('s', 'g', 'c', 0, ['9-0']) == []
    assert executor.calls == [
        ('XCLAIM', ['s', 'g', 'c', '0', '1-0', '3-0', 'FORCE', 'JUSTID']),
        ('XCLAIM', ['s', 'g', 'c', '0', '9-0', 'JUSTID']),
    ]


def test_xclaim_accepts_map_reply_and_pair_arrays():
    raw = reply.mapping([
        (reply.bulk_string('1-0'), reply.array([
            reply.array([reply.bulk_string('f1'), reply.bulk_string('v1')]),
            reply.array([reply.bulk_string('f2'), reply.bulk_string('v2')]),
        ])),
    ])
    streams = StreamCommands(RecordingExecutor(raw))
    assert streams.xclaim('s', 'g', 'c', 0, ['1-0']) == {'1-0': [['f1', 'v1'], ['f2', 'v2']]}


def test_xclaim_skips_deleted_entries():
    raw = reply.array([
        reply.array([reply.bulk_string('1-0'), reply.nil()]),
        entry('2-0', 'f', 'v'),
    ])
    streams = StreamCommands(RecordingExecutor(raw))
    assert streams.xclaim('s', 'g', 'c', 0, ['1-0', '2-0']) == {'2-0': [['f', 'v']]}


# =============================================================================
# Errors
# =============================================================================

def test_error_reply_raises_reply_error():
    text = "NOGROUP No such key 's' or consumer group 'g'"
    streams = StreamCommands(RecordingExecutor(reply.error(text)))

    with pytest.raises(ReplyError) as excinfo:
        streams.xclaim('s', 'g', 'c', 0, ['1-0'])

    assert excinfo.value.prefix == 'NOGROUP'
    assert str(excinfo.value) == text


@pytest.mark.parametrize('call, raw', [
    (lambda s: s.xadd('s', [['f', 'v']]), reply.integer(1)),
    (lambda s: s.xtrim('s', TrimOptions.with_max_len(1)), reply.bulk_string('1')),
    (lambda s: s.xclaim('s', 'g', 'c', 0, ['1-0']), reply.bulk_string('1-0')),
    (lambda s: s.xclaim('s', 'g', 'c', 0, ['1-0']), reply.array([reply.bulk_string('1-0')])),
    (lambda s: s.xclaim('s', 'g', 'c', 0, ['1-0']), reply.array([entry('1-0', 'odd')])),
    (lambda s: s.xclaim_just_id('s', 'g', 'c', 0, ['1-0']), reply.mapping([])),
    (lambda s: s.xclaim_just_id('s', 'g', 'c', 0, ['1-0']), reply.array([reply.integer(1)])),
])
def test_reply_shape_mismatch_raises_decoding_error(call, raw):
    streams = StreamCommands(RecordingExecutor(raw))
    with pytest.raises(DecodingError):
        call(streams)


def test_encoding_failure_skips_executor():
    executor = RecordingExecutor()
    streams = StreamCommands(executor)

    with pytest.raises(EncodingError):
        streams.xclaim_with_options('s', 'g', 'c', 0, ['1-0'], ClaimOptions().set_idle_time('soon'))

    trim = TrimOptions.with_max_len(5).set_nearly_exact_trimming_and_limit(0.5)
    with pytest.raises(EncodingError):
        streams.xadd_with_options('s', [['f', 'v']], AddOptions().set_trim_options(trim))

    assert executor.calls == []


@pytest.mark.parametrize('call', [
    lambda s: s.xadd('', [['f', 'v']]),
    lambda s: s.xadd('s', []),
    lambda s: s.xadd('s', ['fv']),
    lambda s: s.xadd('s', 'fv'),
    lambda s: s.xadd('s', [b'fv']),
    lambda s: s.xadd_with_options('s', [['f', 'v'], 'gw'], AddOptions()),
    lambda s: s.xadd_with_options('s', [['f', 'v']], ClaimOptions()),
    lambda s: s.xtrim('s', AddOptions()),
    lambda s: s.xclaim('s', 'g', 'c', -1, ['1-0']),
    lambda s: s.xclaim('s', 'g', 'c', '0', ['1-0']),
    lambda s: s.xclaim('s', 'g', 'c', 0, []),
    lambda s: s.xclaim('s', 'g', 'c', 0, '1-0'),
    lambda s: s.xclaim('s', '', 'c', 0, ['1-0']),
    lambda s: s.xclaim_just_id_with_options('s', 'g', 'c', 0, ['1-0'], None),
])
def test_invalid_arguments_rejected_before_call(call):
    executor = RecordingExecutor()
    with pytest.raises(InvalidArgumentError):
        call(StreamCommands(executor))
    assert executor.calls == []


def test_executor_errors_pass_through_unchanged():
    streams = StreamCommands(FailingExecutor())
    with pytest.raises(ConnectionError, match='connection reset by peer'):
        streams.xadd('s', [['f', 'v']])


# =============================================================================
# ZSCAN
# =============================================================================

def test_zscan_with_options_tokens_and_page():
    executor = RecordingExecutor(reply.array([
        reply.bulk_string('0'),
        reply.array([reply.bulk_string('a1'), reply.bulk_string('a2')]),
    ]))
    sorted_sets = SortedSetCommands(executor)

    options = ZScanOptions().set_match('a*').set_count(5).set_no_scores(True)
    cursor, items = sorted_sets.zscan_with_options('z', '0', options)

    assert executor.calls == [('ZSCAN', ['z', '0', 'MATCH', 'a*', 'COUNT', '5', 'NOSCORES'])]
    assert cursor == '0'
    assert items == ['a1', 'a2']


# =============================================================================
# End-to-end on MemoryExecutor
# =============================================================================

def test_add_then_claim_round_trip():
    executor = MemoryExecutor(clock=FakeClock())
    client = StreamClient(executor)

    result = client.streams.xadd('myStream', [['field1', 'value1'], ['field2', 'value2']])
    assert not result.is_nil()

    executor.execute('XGROUP', ['CREATE', 'myStream', 'group', '0'])
    executor.execute('XREADGROUP', ['GROUP', 'group', 'consumer1', 'STREAMS', 'myStream', '>'])

    claimed = client.streams.xclaim('myStream', 'group', 'consumer2', 0, [result.value()])
    assert claimed == {result.value(): [['field1', 'value1'], ['field2', 'value2']]}


def test_claim_unowned_ids_returns_empty_mapping():
    executor = MemoryExecutor(clock=FakeClock())
    client = StreamClient(executor)
    entry_id = client.streams.xadd('myStream', [['f', 'v']]).value()
    executor.execute('XGROUP', ['CREATE', 'myStream', 'group', '$'])

    assert client.streams.xclaim('myStream', 'group', 'consumer', 0, [entry_id]) == {}
    assert client.streams.xclaim('myStream', 'group', 'consumer', 0, ['99-0']) == {}


def test_nomkstream_on_missing_stream_creates_nothing():
    executor = MemoryExecutor(clock=FakeClock())
    client = StreamClient(executor)

    result = client.streams.xadd_with_options('ghost', [['f', 'v']],
                                              AddOptions().set_dont_make_new_stream())

    assert result.is_nil()
    assert executor.execute('XLEN', ['ghost']) == reply.integer(0)


def test_string_pair_is_not_split_into_characters():
    executor = MemoryExecutor(clock=FakeClock())
    client = StreamClient(executor)

    with pytest.raises(InvalidArgumentError):
        client.streams.xadd('s', ['fv'])

    assert executor.execute('XLEN', ['s']) == reply.integer(0)


def test_xtrim_on_memory_stream():
    client = StreamClient(MemoryExecutor(clock=FakeClock()))
    for i in range(1, 6):
        client.streams.xadd_with_options('s', [['n', str(i)]], AddOptions().set_id(f'{i}-0'))

    assert client.streams.xtrim('s', TrimOptions.with_max_len(2)) == 3
    assert client.streams.xtrim('s', TrimOptions.with_max_len(2)) == 0


def test_claim_with_options_on_memory_stream():
    clock = FakeClock()
    executor = MemoryExecutor(clock=clock)
    client = StreamClient(executor)
    first = client.streams.xadd('s', [['a', '1']]).value()
    second = client.streams.xadd('s', [['b', '2']]).value()
    executor.execute('XGROUP', ['CREATE', 's', 'g', '0'])
    executor.execute('XREADGROUP', ['GROUP', 'g', 'c1', 'STREAMS', 's', '>'])

    clock.advance(100)
    assert client.streams.xclaim_just_id('s', 'g', 'c2', 500, [first, second]) == []

    options = ClaimOptions().set_retry_count(5)
    ids = client.streams.xclaim_just_id_with_options('s', 'g', 'c2', 50, [second, first], options)
    assert ids == [second, first]


def test_store_error_surfaces_as_reply_error():
    client = StreamClient(MemoryExecutor(clock=FakeClock()))
    client.streams.xadd('s', [['f', 'v']])

    with pytest.raises(ReplyError) as excinfo:
        client.streams.xclaim('s', 'nogroup', 'c', 0, ['1-0'])
    assert excinfo.value.prefix == 'NOGROUP'

    with pytest.raises(ReplyError) as excinfo:
        client.streams.xadd_with_options('s', [['f', 'v']], AddOptions().set_id('0-1'))
    assert 'equal or smaller' in str(excinfo.value)
