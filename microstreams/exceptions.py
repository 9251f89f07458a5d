"""
MicroStreams Exceptions Module

Defines the exception hierarchy for MicroStreams error handling.

Two families live here:
- Client-side errors raised by the command layer (encoding, decoding,
  argument validation, error replies surfaced from the executor).
- Store-side errors raised inside MemoryExecutor and converted into
  Error replies, mirroring the store's error prefixes.
"""

from microstreams.core import reply


class StreamClientError(Exception):
    """
    Base exception for all MicroStreams errors.

    Attributes:
        prefix: str - Error prefix (e.g., 'ERR', 'WRONGTYPE')
    """

    prefix = 'ERR'

    def __init__(self, message=None):
        """
        Initialize error.

        Args:
            message: str - Error message (without prefix)
        """
        self.message = message
        if message:
            super().__init__(f'{self.prefix} {message}')
        else:
            super().__init__(self.prefix)

    def to_reply(self):
        """
        Convert to an Error reply.

        Returns:
            RawReply: Error reply carrying the prefixed message
        """
        return reply.error(str(self))


# =============================================================================
# Client-side errors
# =============================================================================

class EncodingError(StreamClientError):
    """
    Raised when an options object cannot be lowered into tokens.
    """

    prefix = 'ENCODE'


class DecodingError(StreamClientError):
    """
    Raised when a reply does not have the shape the caller expects.

    Attributes:
        reply: RawReply - The offending reply (or sub-reply)
    """

    prefix = 'DECODE'

    def __init__(self, message, raw=None):
        super().__init__(message)
        self.reply = raw


class InvalidArgumentError(StreamClientError):
    """
    Raised when caller input is rejected before any command is sent.
    """


class ReplyError(StreamClientError):
    """
    Raised for an Error reply returned by the executor.

    The store's message is kept verbatim; prefix is its first word.
    """

    def __init__(self, text):
        head, _, rest = text.partition(' ')
        if head and head.isupper():
            self.prefix = head
            super().__init__(rest or None)
        else:
            super().__init__(text)
        self.text = text

    def __str__(self):
        return self.text


# =============================================================================
# Store-side errors (MemoryExecutor)
# =============================================================================

class WrongTypeError(StreamClientError):
    """
    Raised when a command is executed against a key of the wrong type.
    """

    prefix = 'WRONGTYPE'

    def __init__(self):
        super().__init__('Operation against a key holding the wrong kind of value')


class CommandSyntaxError(StreamClientError):
    """
    Raised when a command has invalid syntax.
    """

    def __init__(self, message='syntax error'):
        super().__init__(message)


class NotIntegerError(StreamClientError):
    """
    Raised when a value is not a valid integer.
    """

    def __init__(self, message='value is not an integer or out of range'):
        super().__init__(message)


class InvalidCursorError(StreamClientError):
    """
    Raised when an invalid cursor is used in SCAN family commands.
    """

    def __init__(self):
        super().__init__('invalid cursor')


class StreamIdError(StreamClientError):
    """
    Raised when a stream ID is invalid or out of order.
    """

    def __init__(self, message='Invalid stream ID specified as stream command argument'):
        super().__init__(message)


class NoGroupError(StreamClientError):
    """
    Raised when a consumer group or its stream does not exist.
    """

    prefix = 'NOGROUP'

    def __init__(self, key, group):
        super().__init__(f"No such key '{key}' or consumer group '{group}'")


class BusyGroupError(StreamClientError):
    """
    Raised when creating a consumer group that already exists.
    """

    prefix = 'BUSYGROUP'

    def __init__(self):
        super().__init__('Consumer Group name already exists')


class WrongArityError(StreamClientError):
    """
    Raised when a command has the wrong number of arguments.
    """

    def __init__(self, command_name):
        super().__init__(f"wrong number of arguments for '{command_name}' command")


class UnknownCommandError(StreamClientError):
    """
    Raised when an unknown command is received.
    """

    def __init__(self, command_name):
        super().__init__(f"unknown command '{command_name}'")
