"""
MicroStreams Stream Options Module

Optional arguments for the stream commands (XADD, XTRIM, XCLAIM).

Each options class is a small fluent builder: setters return the instance,
and to_args() lowers the current state into the store's token order.
Options objects are built right before a single call and not shared.

Token order:
- XTRIM/XADD trim:  MAXLEN|MINID [=|~] threshold [LIMIT n]
- XADD:             [NOMKSTREAM] [trim tokens] id|*
- XCLAIM:           [IDLE ms] [TIME ms] [RETRYCOUNT n] [FORCE]
"""

from microstreams.core.constants import (
    NOMKSTREAM, AUTO_ID, MAXLEN, MINID, EXACT, APPROXIMATE, LIMIT,
    IDLE, TIME, RETRYCOUNT, FORCE,
)
from microstreams.exceptions import EncodingError


class TriState:
    """
    Tri-state flag for option builders.

    The default (UNSET) never means False, so to_args() can leave the
    keyword out entirely.
    """

    __slots__ = ()

    UNSET = 0
    TRUE = 1
    FALSE = 2


def _int_token(value):
    """Render an integer option value as a wire token."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f'expected an integer option value, got {value!r}')
    return str(value)


class TrimOptions:
    """
    Optional arguments for XTRIM, and for XADD via AddOptions.

    The trimming method is chosen by the factory and cannot change later,
    so the threshold is always encoded for the right method.

    Usage:
        TrimOptions.with_max_len(1000).set_nearly_exact_trimming()
        TrimOptions.with_min_id('1526919030474-0').set_exact_trimming()
    """

    __slots__ = ('_method', '_threshold', '_exact', '_limit')

    def __init__(self, method, threshold):
        if method not in (MAXLEN, MINID):
            raise EncodingError(f'unknown trim method {method!r}')
        self._method = method
        self._threshold = threshold
        self._exact = TriState.UNSET
        self._limit = 0

    @classmethod
    def with_max_len(cls, threshold):
        """Trim the stream according to maximum stream length."""
        return cls(MAXLEN, _int_token(threshold))

    @classmethod
    def with_min_id(cls, threshold):
        """Trim entries with ids lower than threshold."""
        return cls(MINID, str(threshold))

    @property
    def method(self):
        return self._method

    def set_exact_trimming(self):
        """Match exactly on the threshold."""
        self._exact = TriState.TRUE
        return self

    def set_nearly_exact_trimming(self):
        """Trim in a near-exact manner, which is more efficient."""
        self._exact = TriState.FALSE
        return self

    def set_nearly_exact_trimming_and_limit(self, limit):
        """
        Trim near-exactly, evicting at most limit entries.

        Args:
            limit: int - Max number of entries to trim (0 = store default)
        """
        self._exact = TriState.FALSE
        self._limit = limit
        return self

    def to_args(self):
        """
        Lower into XTRIM tokens.

        Returns:
            list[str]: [method, ('='|'~')?, threshold, ('LIMIT', n)?]

        Raises:
            EncodingError: if the limit is not an integer
        """
        limit = _int_token(self._limit)

        args = [self._method]
        if self._exact == TriState.TRUE:
            args.append(EXACT)
        elif self._exact == TriState.FALSE:
            args.append(APPROXIMATE)
        args.append(self._threshold)
        if self._limit > 0:
            args.extend((LIMIT, limit))
        return args

    def __repr__(self):
        return (f'TrimOptions(method={self._method!r}, threshold={self._threshold!r}, '
                f'exact={self._exact}, limit={self._limit!r})')


class AddOptions:
    """
    Optional arguments for XADD.

    Usage:
        AddOptions().set_id('100-500').set_dont_make_new_stream()
    """

    __slots__ = ('_id', '_make_stream', '_trim_options')

    def __init__(self):
        self._id = ''
        self._make_stream = TriState.UNSET
        self._trim_options = None

    def set_id(self, entry_id):
        """New entry will be added with this id."""
        self._id = entry_id
        return self

    def set_dont_make_new_stream(self):
        """If set, a new stream won't be created if no stream matches the key."""
        self._make_stream = TriState.FALSE
        return self

    def set_trim_options(self, options):
        """
        If set, the add operation will also trim older entries.

        Args:
            options: TrimOptions - owned by this AddOptions from now on
        """
        if options is not None and not isinstance(options, TrimOptions):
            raise EncodingError(f'expected TrimOptions, got {type(options).__name__}')
        self._trim_options = options
        return self

    def to_args(self):
        """
        Lower into XADD tokens placed between the key and the field/value pairs.

        Returns:
            list[str]: ['NOMKSTREAM'?, <trim tokens>?, id or '*']

        Raises:
            EncodingError: propagated from the attached TrimOptions
        """
        args = []
        if self._make_stream == TriState.FALSE:
            args.append(NOMKSTREAM)
        if self._trim_options is not None:
            args.extend(self._trim_options.to_args())
        args.append(self._id if self._id else AUTO_ID)
        return args

    def __repr__(self):
        return (f'AddOptions(id={self._id!r}, make_stream={self._make_stream}, '
                f'trim={self._trim_options!r})')


class ClaimOptions:
    """
    Optional arguments for XCLAIM.

    Numeric modifiers are only sent when strictly positive; zero means
    "not set". JUSTID is added by the command surface, not here.
    """

    __slots__ = ('_idle_time', '_idle_unix_time', '_retry_count', '_force')

    def __init__(self):
        self._idle_time = 0
        self._idle_unix_time = 0
        self._retry_count = 0
        self._force = False

    def set_idle_time(self, idle_time):
        """Set the idle time in milliseconds."""
        self._idle_time = idle_time
        return self

    def set_idle_unix_time(self, idle_unix_time):
        """Set the idle time in unix-milliseconds."""
        self._idle_unix_time = idle_unix_time
        return self

    def set_retry_count(self, retry_count):
        """Set the retry count."""
        self._retry_count = retry_count
        return self

    def set_force(self, force=True):
        """Create pending entries for ids not yet in the pending list."""
        self._force = bool(force)
        return self

    def to_args(self):
        """
        Lower into XCLAIM option tokens.

        Returns:
            list[str]: ['IDLE' n?, 'TIME' n?, 'RETRYCOUNT' n?, 'FORCE'?]
        """
        args = []
        for keyword, value in ((IDLE, self._idle_time),
                               (TIME, self._idle_unix_time),
                               (RETRYCOUNT, self._retry_count)):
            token = _int_token(value)
            if value > 0:
                args.extend((keyword, token))
        if self._force:
            args.append(FORCE)
        return args

    def __repr__(self):
        return (f'ClaimOptions(idle_time={self._idle_time!r}, idle_unix_time={self._idle_unix_time!r}, '
                f'retry_count={self._retry_count!r}, force={self._force})')
