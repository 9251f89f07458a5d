"""
MicroStreams Sorted Set Commands

Cursor-based iteration over sorted sets (ZSCAN).
"""

import logging

from microstreams.core.constants import ZSCAN
from microstreams.commands.decoders import ReplyDecoder
from microstreams.exceptions import InvalidArgumentError
from microstreams.options.scan import ZScanOptions

logger = logging.getLogger(__name__)


class SortedSetCommands:
    """Sorted set command family over a CommandExecutor."""

    __slots__ = ('_executor', '_decoder')

    def __init__(self, executor, decoder=None):
        self._executor = executor
        self._decoder = decoder or ReplyDecoder()

    def zscan(self, key, cursor):
        """
        Iterate members and scores of the sorted set at key.

        Args:
            key: str - The key of the sorted set
            cursor: str - '0' to start, then the cursor from the previous call

        Returns:
            tuple: (next_cursor, [member, score, member, score, ...]);
            next_cursor is '0' when the iteration is complete
        """
        return self.zscan_with_options(key, cursor, ZScanOptions())

    def zscan_with_options(self, key, cursor, options):
        """
        Iterate the sorted set at key with MATCH, COUNT and NOSCORES.

        Returns:
            tuple: (next_cursor, items); items holds members only when
            options.set_no_scores(True) was used
        """
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError('key must be a non-empty string')
        if not isinstance(options, ZScanOptions):
            raise InvalidArgumentError(f'expected ZScanOptions, got {type(options).__name__}')

        args = [key, str(cursor)]
        args.extend(options.to_args())

        logger.debug('%s %s cursor=%s', ZSCAN, key, cursor)
        return self._decoder.scan_page(self._executor.execute(ZSCAN, args))
