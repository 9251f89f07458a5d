"""
MicroStreams Options Module

Fluent builders for optional command arguments:
- stream: TriState, TrimOptions, AddOptions, ClaimOptions
- scan: BaseScanOptions, ZScanOptions
"""

from .stream import TriState, TrimOptions, AddOptions, ClaimOptions
from .scan import BaseScanOptions, ZScanOptions

__all__ = [
    'TriState',
    'TrimOptions',
    'AddOptions',
    'ClaimOptions',
    'BaseScanOptions',
    'ZScanOptions',
]
