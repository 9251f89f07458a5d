"""
MicroStreams Constants Module

Defines the wire keyword vocabulary, reply kind tags and client defaults.

Keywords must match the store's command grammar exactly (case-sensitive).
"""

# =============================================================================
# Stream Command Names
# =============================================================================

XADD = 'XADD'
XTRIM = 'XTRIM'
XCLAIM = 'XCLAIM'
ZSCAN = 'ZSCAN'

# =============================================================================
# Stream Option Keywords
# =============================================================================

NOMKSTREAM = 'NOMKSTREAM'      # XADD: don't create the stream if missing
AUTO_ID = '*'                  # XADD: let the store generate the entry id

MAXLEN = 'MAXLEN'              # Trim by maximum stream length
MINID = 'MINID'                # Trim by minimum entry id
EXACT = '='                    # Exact trimming marker
APPROXIMATE = '~'              # Nearly-exact trimming marker
LIMIT = 'LIMIT'                # Cap on entries evicted by nearly-exact trim

IDLE = 'IDLE'                  # XCLAIM: idle time in milliseconds
TIME = 'TIME'                  # XCLAIM: idle time as unix-milliseconds
RETRYCOUNT = 'RETRYCOUNT'      # XCLAIM: delivery counter override
FORCE = 'FORCE'                # XCLAIM: create pending entries if missing
JUSTID = 'JUSTID'              # XCLAIM: return ids only

# =============================================================================
# Scan Option Keywords
# =============================================================================

MATCH = 'MATCH'
COUNT = 'COUNT'
NOSCORES = 'NOSCORES'

# =============================================================================
# Reply Kinds
# =============================================================================
# Tags of the RawReply tagged union

NIL = 'nil'
BULK_STRING = 'bulk_string'
ARRAY = 'array'
MAP = 'map'
INTEGER = 'integer'
SIMPLE_STRING = 'simple_string'
ERROR = 'error'

REPLY_KINDS = (NIL, BULK_STRING, ARRAY, MAP, INTEGER, SIMPLE_STRING, ERROR)

# =============================================================================
# Client Defaults
# =============================================================================

DEFAULT_URL = 'redis://localhost:6379'
DEFAULT_ENCODING = 'utf-8'
DEFAULT_SCAN_COUNT = 10           # Store's default COUNT hint for SCAN family
