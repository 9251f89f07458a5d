"""
MicroStreams Raw Reply Module

Provides the RawReply tagged union returned by every CommandExecutor,
together with builder functions for each reply kind.

Reply kinds:
- Nil: absent value
- BulkString: binary-safe string (bytes or str)
- Array: ordered list of RawReply
- Map: ordered list of (RawReply, RawReply) pairs
- Integer: signed integer
- SimpleString: status line such as 'OK'
- Error: store-side error message
"""

from .constants import (
    NIL, BULK_STRING, ARRAY, MAP, INTEGER, SIMPLE_STRING, ERROR, REPLY_KINDS,
)


class RawReply:
    """
    A single reply value tagged with its kind.

    Attributes:
        kind: str - One of REPLY_KINDS
        value: payload (None, bytes/str, int, list of RawReply,
               or list of (RawReply, RawReply) for maps)
    """

    __slots__ = ('kind', 'value')

    def __init__(self, kind, value=None):
        if kind not in REPLY_KINDS:
            raise ValueError(f'unknown reply kind: {kind!r}')
        self.kind = kind
        self.value = value

    def is_nil(self):
        return self.kind == NIL

    def is_error(self):
        return self.kind == ERROR

    def __eq__(self, other):
        if not isinstance(other, RawReply):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value

    def __repr__(self):
        if self.kind == NIL:
            return 'RawReply(nil)'
        return f'RawReply({self.kind}, {self.value!r})'


# =============================================================================
# Pre-allocated Common Replies
# =============================================================================

NIL_REPLY = RawReply(NIL)
OK_REPLY = RawReply(SIMPLE_STRING, 'OK')
PONG_REPLY = RawReply(SIMPLE_STRING, 'PONG')
EMPTY_ARRAY_REPLY = RawReply(ARRAY, [])

# =============================================================================
# Reply Building Functions
# =============================================================================

def nil():
    """Return the shared Nil reply."""
    return NIL_REPLY


def simple_string(msg):
    """
    Build a SimpleString reply.

    Example: simple_string('OK') -> RawReply(simple_string, 'OK')
    """
    if msg == 'OK':
        return OK_REPLY
    return RawReply(SIMPLE_STRING, msg)


def error(msg):
    """
    Build an Error reply.

    Args:
        msg: str - Full error line including its prefix, e.g. 'ERR syntax error'
    """
    if isinstance(msg, bytes):
        msg = msg.decode('utf-8', 'replace')
    return RawReply(ERROR, msg)


def integer(n):
    """Build an Integer reply."""
    return RawReply(INTEGER, int(n))


def bulk_string(data):
    """
    Build a BulkString reply.

    Args:
        data: bytes or str - Payload (kept as given)
    """
    return RawReply(BULK_STRING, data)


def array(items):
    """
    Build an Array reply from already-built replies.

    Args:
        items: list of RawReply
    """
    if not items:
        return EMPTY_ARRAY_REPLY
    return RawReply(ARRAY, list(items))


def mapping(pairs):
    """
    Build a Map reply.

    Args:
        pairs: iterable of (RawReply, RawReply) - keeps the given order
    """
    return RawReply(MAP, list(pairs))


def from_python(value):
    """
    Convert a native Python value into a RawReply.

    Type mapping:
    - None -> Nil
    - RawReply -> itself
    - bool/int -> Integer
    - str/bytes -> BulkString
    - list/tuple -> Array (recursive)
    - dict -> Map (recursive, insertion order)
    - Exception -> Error

    Raises:
        TypeError: If value type is not supported
    """
    if value is None:
        return NIL_REPLY

    elif isinstance(value, RawReply):
        return value

    elif isinstance(value, int):
        return integer(value)

    elif isinstance(value, (str, bytes)):
        return bulk_string(value)

    elif isinstance(value, (list, tuple)):
        return array([from_python(item) for item in value])

    elif isinstance(value, dict):
        return mapping((from_python(k), from_python(v)) for k, v in value.items())

    elif isinstance(value, Exception):
        return error(str(value))

    else:
        raise TypeError(f'Cannot convert type {type(value).__name__} to a reply')
