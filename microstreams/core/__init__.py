"""
MicroStreams Core Module

Core building blocks shared by the options, command and executor layers:
- constants: wire keyword vocabulary and reply kind tags
- reply: RawReply tagged union and reply builders
- result: present-or-absent scalar wrapper
"""

from .reply import (
    RawReply,
    NIL_REPLY,
    OK_REPLY,
    PONG_REPLY,
    EMPTY_ARRAY_REPLY,
    nil,
    simple_string,
    error,
    integer,
    bulk_string,
    array,
    mapping,
    from_python,
)

from .result import Result

__all__ = [
    'RawReply',
    'NIL_REPLY',
    'OK_REPLY',
    'PONG_REPLY',
    'EMPTY_ARRAY_REPLY',
    'nil',
    'simple_string',
    'error',
    'integer',
    'bulk_string',
    'array',
    'mapping',
    'from_python',
    'Result',
]
