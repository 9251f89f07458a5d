"""
MicroStreams Commands Module

Typed command families built on a CommandExecutor:
- streams: XADD, XTRIM, XCLAIM (incl. JUSTID)
- sorted_sets: ZSCAN
- decoders: reply projections shared by the families
"""

from .decoders import ReplyDecoder
from .streams import StreamCommands
from .sorted_sets import SortedSetCommands

__all__ = [
    'ReplyDecoder',
    'StreamCommands',
    'SortedSetCommands',
]
