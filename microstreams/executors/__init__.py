"""
MicroStreams Executors

A CommandExecutor takes a command name plus an ordered token list and
returns a RawReply. Connection handling, authentication, routing and
retries all live behind this seam.

Available executors:
- memory.MemoryExecutor: in-process store for tests and offline use
- redis_executor.RedisExecutor: a redis-py client
"""


class CommandExecutor:
    """
    Contract consumed by the command surface.

    Implementations return store-side failures as Error replies and raise
    for transport-level failures; both reach the caller unchanged.
    """

    def execute(self, command, args):
        """
        Execute one command.

        Args:
            command: str - Command name, e.g. 'XADD'
            args: list[str] - Ordered argument tokens

        Returns:
            RawReply
        """
        raise NotImplementedError


__all__ = ['CommandExecutor']
