"""
MicroStreams Scan Options Module

Optional arguments for the cursor-based SCAN family.

BaseScanOptions carries the fields every SCAN variant shares. Specialized
options embed it and append their own tokens after the base tokens.
"""

from microstreams.core.constants import MATCH, COUNT, NOSCORES
from microstreams.exceptions import EncodingError


class BaseScanOptions:
    """
    Shared SCAN arguments: MATCH pattern and COUNT hint.
    """

    __slots__ = ('_match', '_count')

    def __init__(self):
        self._match = ''
        self._count = 0

    def set_match(self, match):
        """Only return elements matching the glob-style pattern."""
        self._match = match
        return self

    def set_count(self, count):
        """Hint for how many elements to examine per iteration."""
        self._count = count
        return self

    def to_args(self):
        """
        Returns:
            list[str]: ['MATCH' pattern?, 'COUNT' n?]

        Raises:
            EncodingError: if count is not an integer
        """
        if isinstance(self._count, bool) or not isinstance(self._count, int):
            raise EncodingError(f'expected an integer COUNT, got {self._count!r}')

        args = []
        if self._match:
            args.extend((MATCH, self._match))
        if self._count > 0:
            args.extend((COUNT, str(self._count)))
        return args


class ZScanOptions:
    """
    Optional arguments for ZSCAN.

    Usage:
        ZScanOptions().set_match('user:*').set_count(100).set_no_scores(True)
    """

    __slots__ = ('base', '_no_scores')

    def __init__(self):
        self.base = BaseScanOptions()
        self._no_scores = False

    def set_match(self, match):
        self.base.set_match(match)
        return self

    def set_count(self, count):
        self.base.set_count(count)
        return self

    def set_no_scores(self, no_scores):
        """
        If set, ZSCAN is called with NOSCORES and only members are returned.
        """
        self._no_scores = bool(no_scores)
        return self

    def to_args(self):
        args = self.base.to_args()
        if self._no_scores:
            args.append(NOSCORES)
        return args
