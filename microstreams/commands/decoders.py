"""
MicroStreams Reply Decoders

Project RawReply values into the typed results declared by the command
surface. A reply whose shape does not match raises DecodingError; nothing
is coerced silently.

Error replies are turned into ReplyError before any projection runs.
"""

import logging

from microstreams.core.constants import (
    NIL, BULK_STRING, ARRAY, MAP, INTEGER, SIMPLE_STRING, ERROR,
)
from microstreams.core.result import Result
from microstreams.exceptions import DecodingError, ReplyError
from microstreams.utils import to_str

logger = logging.getLogger(__name__)

_STRING_KINDS = (BULK_STRING, SIMPLE_STRING)


def _mismatch(expected, raw):
    logger.warning('reply shape mismatch: expected %s, got %r', expected, raw)
    return DecodingError(f'expected {expected}, got {raw.kind} reply', raw)


class ReplyDecoder:
    """
    Reply projections sharing one text encoding.

    Args:
        encoding: str - Codec for bytes payloads
        errors: str - Codec error handler
    """

    __slots__ = ('encoding', 'errors')

    def __init__(self, encoding='utf-8', errors='strict'):
        self.encoding = encoding
        self.errors = errors

    def check(self, raw):
        """Raise ReplyError for an Error reply; return the reply otherwise."""
        if raw.kind == ERROR:
            raise ReplyError(to_str(raw.value, self.encoding, 'replace'))
        return raw

    def text(self, raw):
        """String reply -> str."""
        if raw.kind not in _STRING_KINDS:
            raise _mismatch('a string', raw)
        try:
            return to_str(raw.value, self.encoding, self.errors)
        except UnicodeDecodeError as e:
            raise DecodingError(f'cannot decode string reply: {e}', raw)

    def string_or_nil(self, raw):
        """String or Nil reply -> Result."""
        self.check(raw)
        if raw.kind == NIL:
            return Result.nil()
        return Result.of(self.text(raw))

    def integer(self, raw):
        """Integer reply -> int."""
        self.check(raw)
        if raw.kind != INTEGER:
            raise _mismatch('an integer', raw)
        return raw.value

    def string_list(self, raw):
        """Array of strings -> list[str], in reply order."""
        self.check(raw)
        if raw.kind != ARRAY:
            raise _mismatch('an array', raw)
        return [self.text(item) for item in raw.value]

    def _field_pairs(self, raw):
        """Flat [f, v, f, v] array, or an array of [f, v] arrays -> [[f, v], ...]."""
        if raw.kind == MAP:
            return [[self.text(k), self.text(v)] for k, v in raw.value]
        if raw.kind != ARRAY:
            raise _mismatch('an array of field/value pairs', raw)

        items = raw.value
        if items and all(item.kind == ARRAY for item in items):
            pairs = []
            for item in items:
                if len(item.value) != 2:
                    raise _mismatch('a [field, value] pair', item)
                pairs.append([self.text(item.value[0]), self.text(item.value[1])])
            return pairs

        if len(items) % 2:
            raise DecodingError('odd number of tokens in field/value list', raw)
        return [[self.text(items[i]), self.text(items[i + 1])] for i in range(0, len(items), 2)]

    def entry_map(self, raw):
        """
        Stream entries -> {id: [[field, value], ...]} in reply order.

        Accepts the array form [[id, fields], ...] and the map form
        {id: fields}. Entries whose body is Nil (deleted on the store)
        are left out.
        """
        self.check(raw)
        if raw.kind == MAP:
            pairs = raw.value
        elif raw.kind == ARRAY:
            pairs = []
            for item in raw.value:
                if item.kind != ARRAY or len(item.value) != 2:
                    raise _mismatch('an [id, fields] entry', item)
                pairs.append(tuple(item.value))
        else:
            raise _mismatch('an array or map of entries', raw)

        entries = {}
        for entry_id, body in pairs:
            if body.kind == NIL:
                continue
            entries[self.text(entry_id)] = self._field_pairs(body)
        return entries

    def scan_page(self, raw):
        """[cursor, [item, ...]] -> (cursor, list[str])."""
        self.check(raw)
        if raw.kind != ARRAY or len(raw.value) != 2:
            raise _mismatch('a [cursor, items] pair', raw)
        cursor, items = raw.value
        if cursor.kind == INTEGER:
            cursor_text = str(cursor.value)
        else:
            cursor_text = self.text(cursor)
        return cursor_text, self.string_list(items)
