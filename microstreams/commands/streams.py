"""
MicroStreams Stream Commands

Typed entry points for the stream commands. Each call:
1. validates caller input,
2. lowers the options object into tokens (before any I/O),
3. hands [positional args, option tokens] to the executor,
4. projects the raw reply into the declared result.

Any failure aborts the call: nothing is sent when encoding fails and no
partial result is returned when decoding fails.

Commands:
- XADD:   xadd, xadd_with_options -> Result (entry id, or nil)
- XTRIM:  xtrim -> int (entries removed)
- XCLAIM: xclaim, xclaim_with_options -> {id: [[field, value], ...]}
          xclaim_just_id, xclaim_just_id_with_options -> [id, ...]
"""

import logging

from microstreams.core.constants import XADD, XTRIM, XCLAIM, JUSTID
from microstreams.commands.decoders import ReplyDecoder
from microstreams.exceptions import InvalidArgumentError
from microstreams.options.stream import AddOptions, ClaimOptions, TrimOptions
from microstreams.utils import flatten_pairs

logger = logging.getLogger(__name__)


def _require_key(key):
    if not isinstance(key, str) or not key:
        raise InvalidArgumentError('key must be a non-empty string')


def _require_options(options, expected):
    if not isinstance(options, expected):
        raise InvalidArgumentError(
            f'expected {expected.__name__}, got {type(options).__name__}')


class StreamCommands:
    """
    Stream command family over a CommandExecutor.

    Usage:
        streams = StreamCommands(MemoryExecutor())
        result = streams.xadd('myStream', [['field1', 'value1'], ['field2', 'value2']])
        result.is_nil()   # False
        result.value()    # '1526919030474-0'
    """

    __slots__ = ('_executor', '_decoder')

    def __init__(self, executor, decoder=None):
        """
        Args:
            executor: CommandExecutor - Runs the encoded commands
            decoder: ReplyDecoder - Reply projections (default: utf-8, strict)
        """
        self._executor = executor
        self._decoder = decoder or ReplyDecoder()

    def _execute(self, command, args):
        logger.debug('%s %s (%d tokens)', command, args[0], len(args))
        return self._executor.execute(command, args)

    # =========================================================================
    # XADD
    # =========================================================================

    def xadd(self, key, values):
        """
        Add an entry to the stream at key, creating the stream if needed.

        Args:
            key: str - The key of the stream
            values: list - Field/value pairs, e.g. [['field1', 'value1'], ...]

        Returns:
            Result: the id of the added entry
        """
        return self.xadd_with_options(key, values, AddOptions())

    def xadd_with_options(self, key, values, options):
        """
        Add an entry to the stream at key.

        Args:
            key: str - The key of the stream
            values: list - Field/value pairs
            options: AddOptions - Id, NOMKSTREAM and trimming

        Returns:
            Result: the id of the added entry, or nil when the stream does
            not exist and options.set_dont_make_new_stream() was used

        Example:
            options = AddOptions().set_id('100-500').set_dont_make_new_stream()
            streams.xadd_with_options('myStream', [['field1', 'value1']], options)
        """
        _require_key(key)
        _require_options(options, AddOptions)
        if isinstance(values, (str, bytes)) or not values:
            raise InvalidArgumentError('values must contain at least one field/value pair')
        if any(isinstance(pair, (str, bytes)) for pair in values):
            raise InvalidArgumentError('each value must be a [field, value] pair, not a string')

        args = [key]
        args.extend(options.to_args())
        args.extend(flatten_pairs(values))

        return self._decoder.string_or_nil(self._execute(XADD, args))

    # =========================================================================
    # XTRIM
    # =========================================================================

    def xtrim(self, key, options):
        """
        Trim the stream at key.

        Args:
            key: str - The key of the stream
            options: TrimOptions - Trimming method and threshold

        Returns:
            int: number of entries deleted
        """
        _require_key(key)
        _require_options(options, TrimOptions)

        args = [key]
        args.extend(options.to_args())

        return self._decoder.integer(self._execute(XTRIM, args))

    # =========================================================================
    # XCLAIM
    # =========================================================================

    @staticmethod
    def _claim_args(key, group, consumer, min_idle_time, ids, options):
        _require_key(key)
        if not group or not consumer:
            raise InvalidArgumentError('group and consumer must be non-empty')
        if isinstance(min_idle_time, bool) or not isinstance(min_idle_time, int):
            raise InvalidArgumentError('min_idle_time must be an integer')
        if min_idle_time < 0:
            raise InvalidArgumentError('min_idle_time must be >= 0')
        if isinstance(ids, str) or not ids:
            raise InvalidArgumentError('ids must be a non-empty sequence of entry ids')
        _require_options(options, ClaimOptions)

        args = [key, group, consumer, str(min_idle_time)]
        args.extend(ids)
        args.extend(options.to_args())
        return args

    def xclaim(self, key, group, consumer, min_idle_time, ids):
        """
        Change the ownership of pending entries.

        Args:
            key: str - The key of the stream
            group: str - The consumer group
            consumer: str - The consumer taking ownership
            min_idle_time: int - Minimum idle time in milliseconds
            ids: list[str] - Entry ids to claim

        Returns:
            dict: {entry_id: [[field, value], ...]} for the claimed entries,
            in the order the store returned them
        """
        return self.xclaim_with_options(key, group, consumer, min_idle_time, ids, ClaimOptions())

    def xclaim_with_options(self, key, group, consumer, min_idle_time, ids, options):
        """
        Change the ownership of pending entries.

        Args:
            options: ClaimOptions - IDLE, TIME, RETRYCOUNT and FORCE

        Returns:
            dict: {entry_id: [[field, value], ...]}
        """
        args = self._claim_args(key, group, consumer, min_idle_time, ids, options)
        return self._decoder.entry_map(self._execute(XCLAIM, args))

    def xclaim_just_id(self, key, group, consumer, min_idle_time, ids):
        """
        Change the ownership of pending entries, returning ids only (JUSTID).

        Returns:
            list[str]: claimed entry ids
        """
        return self.xclaim_just_id_with_options(
            key, group, consumer, min_idle_time, ids, ClaimOptions())

    def xclaim_just_id_with_options(self, key, group, consumer, min_idle_time, ids, options):
        """
        Change the ownership of pending entries, returning ids only (JUSTID).

        Returns:
            list[str]: claimed entry ids
        """
        args = self._claim_args(key, group, consumer, min_idle_time, ids, options)
        args.append(JUSTID)
        return self._decoder.string_list(self._execute(XCLAIM, args))
