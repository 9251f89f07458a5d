"""
MicroStreams Result Module

A scalar that is either present or absent. Commands that may legitimately
return nothing (e.g. XADD with NOMKSTREAM on a missing stream) return a
Result so callers handle the no-op case explicitly.
"""


class Result:
    """
    Present-or-absent value.

    Usage:
        result = client.streams.xadd('mystream', [['f', 'v']])
        if not result.is_nil():
            print(result.value())
    """

    __slots__ = ('_value', '_is_nil')

    def __init__(self, value, is_nil=False):
        self._value = value
        self._is_nil = is_nil

    @classmethod
    def of(cls, value):
        return cls(value)

    @classmethod
    def nil(cls):
        return cls(None, is_nil=True)

    def is_nil(self):
        return self._is_nil

    def value(self):
        """
        Return the wrapped value.

        Returns None for an absent result; check is_nil() first when None
        could be a meaningful value.
        """
        return self._value

    def value_or(self, default):
        return default if self._is_nil else self._value

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_nil == other._is_nil and self._value == other._value

    def __hash__(self):
        return hash((self._is_nil, self._value))

    def __repr__(self):
        if self._is_nil:
            return 'Result(nil)'
        return f'Result({self._value!r})'
