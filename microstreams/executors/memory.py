"""
MicroStreams In-Memory Executor

An in-process store that speaks the stream, consumer-group and sorted-set
command grammar and answers with RawReply values. Used by tests, examples
and offline development in place of a network server.

Supported commands:
- Streams: XADD, XTRIM, XLEN, XRANGE
- Consumer groups: XGROUP CREATE|DESTROY, XREADGROUP, XACK, XPENDING, XCLAIM
- Sorted sets: ZADD, ZSCAN
- Keys: DEL, PING

Stream Structure:
{
    'ids': [(ms, seq), ...],               # Ordered entry ids
    'entries': {(ms, seq): [(f, v), ...]},  # Field/value pairs per id
    'last_id': (ms, seq),                  # Never goes backwards
    'groups': {name: group},
}

Group Structure:
{
    'last_delivered': (ms, seq),
    'pending': {(ms, seq): [consumer, delivery_time_ms, delivery_count]},
    'consumers': set(),
}

Store-side failures are returned as Error replies, never raised.
"""

import bisect
import logging
import threading

from microstreams.core import reply
from microstreams.core.constants import (
    MAXLEN, MINID, EXACT, APPROXIMATE, LIMIT, NOMKSTREAM, AUTO_ID,
    IDLE, TIME, RETRYCOUNT, FORCE, JUSTID, MATCH, COUNT, NOSCORES,
    DEFAULT_SCAN_COUNT,
)
from microstreams.exceptions import (
    StreamClientError, WrongTypeError, CommandSyntaxError, NotIntegerError,
    InvalidCursorError, StreamIdError, NoGroupError, BusyGroupError,
    WrongArityError, UnknownCommandError,
)
from microstreams.executors import CommandExecutor
from microstreams.utils import glob_match, to_str, parse_int, format_score, get_timestamp_ms

logger = logging.getLogger(__name__)

TYPE_STREAM = 'stream'
TYPE_ZSET = 'zset'

MIN_ID = (0, 0)
MAX_ID = (2 ** 64 - 1, 2 ** 64 - 1)


class CommandInfo:
    """Metadata about a registered command.

    Attributes:
        name: Command name (upper case)
        handler: Callable(*args) -> RawReply
        arity: Argument count including command name (>0 exact, <0 minimum)
    """
    __slots__ = ('name', 'handler', 'arity')

    def __init__(self, name, handler, arity):
        self.name = name
        self.handler = handler
        self.arity = arity


def _is_digits(text):
    return text.isascii() and text.isdigit()


def parse_stream_id(token, missing_seq=0):
    """
    Parse a stream entry id into a (ms, seq) tuple.

    Accepts 'ms-seq', 'ms' (sequence defaults to missing_seq), and the
    special range ids '-' and '+'.

    Raises:
        StreamIdError: if the token is not a valid id
    """
    if token == '-':
        return MIN_ID
    if token == '+':
        return MAX_ID
    ms, sep, seq = token.partition('-')
    if not _is_digits(ms) or (sep and not _is_digits(seq)):
        raise StreamIdError()
    return (int(ms), int(seq) if sep else missing_seq)


def format_stream_id(id_tuple):
    return f'{id_tuple[0]}-{id_tuple[1]}'


def _int_arg(token, message='value is not an integer or out of range'):
    try:
        return parse_int(token)
    except ValueError:
        raise NotIntegerError(message)


class MemoryExecutor(CommandExecutor):
    """
    In-process CommandExecutor backed by plain dicts.

    Args:
        clock: callable returning the current time in milliseconds.
               Inject a fake clock to make idle-time behavior deterministic.

    A single lock serializes commands, so one instance can be shared
    across threads.
    """

    __slots__ = ('_data', '_types', '_commands', '_lock', '_clock')

    def __init__(self, clock=None):
        self._data = {}
        self._types = {}
        self._commands = {}
        self._lock = threading.Lock()
        self._clock = clock or get_timestamp_ms
        self._register_all_commands()

    # =========================================================================
    # Dispatch
    # =========================================================================

    def register(self, name, handler, arity):
        """Register a command handler.

        Args:
            name: str - Command name
            handler: Callable(*args) -> RawReply
            arity: int - Argument count including command name
        """
        name = name.upper()
        self._commands[name] = CommandInfo(name, handler, arity)

    def _register_all_commands(self):
        self.register('PING', self._cmd_ping, -1)
        self.register('DEL', self._cmd_del, -2)

        self.register('XADD', self._cmd_xadd, -5)
        self.register('XTRIM', self._cmd_xtrim, -4)
        self.register('XLEN', self._cmd_xlen, 2)
        self.register('XRANGE', self._cmd_xrange, -4)
        self.register('XGROUP', self._cmd_xgroup, -2)
        self.register('XREADGROUP', self._cmd_xreadgroup, -7)
        self.register('XACK', self._cmd_xack, -4)
        self.register('XPENDING', self._cmd_xpending, -3)
        self.register('XCLAIM', self._cmd_xclaim, -6)

        self.register('ZADD', self._cmd_zadd, -4)
        self.register('ZSCAN', self._cmd_zscan, -3)

    def execute(self, command, args):
        """Execute a command with arguments.

        Args:
            command: str or bytes - Command name
            args: list - Argument tokens (str or bytes)

        Returns:
            RawReply
        """
        name = to_str(command)
        info = self._commands.get(name.upper())

        if info is None:
            return UnknownCommandError(name).to_reply()

        args = [to_str(arg) for arg in args]

        if not self._check_arity(info, args):
            return WrongArityError(name.lower()).to_reply()

        with self._lock:
            try:
                return info.handler(*args)
            except StreamClientError as e:
                logger.debug('%s failed: %s', info.name, e)
                return e.to_reply()

    @staticmethod
    def _check_arity(info, args):
        arg_count = len(args) + 1  # +1 for command name
        if info.arity > 0:
            return arg_count == info.arity
        return arg_count >= -info.arity

    # =========================================================================
    # Keyspace Helpers
    # =========================================================================

    def _lookup(self, key, type_name):
        """Return the value at key, None if missing; WRONGTYPE on mismatch."""
        if key not in self._data:
            return None
        if self._types[key] != type_name:
            raise WrongTypeError()
        return self._data[key]

    def _store(self, key, type_name, value):
        self._data[key] = value
        self._types[key] = type_name

    @staticmethod
    def _new_stream():
        return {
            'ids': [],
            'entries': {},
            'last_id': MIN_ID,
            'groups': {},
        }

    def _get_group(self, key, group_name):
        stream = self._lookup(key, TYPE_STREAM)
        if stream is None or group_name not in stream['groups']:
            raise NoGroupError(key, group_name)
        return stream, stream['groups'][group_name]

    # =========================================================================
    # Keys
    # =========================================================================

    def _cmd_ping(self, *args):
        """PING [message]"""
        if args:
            return reply.bulk_string(args[0])
        return reply.PONG_REPLY

    def _cmd_del(self, *keys):
        """DEL key [key ...]"""
        deleted = 0
        for key in keys:
            if key in self._data:
                del self._data[key]
                del self._types[key]
                deleted += 1
        return reply.integer(deleted)

    # =========================================================================
    # Stream Entries
    # =========================================================================

    def _next_auto_id(self, stream):
        ms = self._clock()
        last_ms, last_seq = stream['last_id']
        if ms <= last_ms:
            # Same millisecond or clock went backwards
            return (last_ms, last_seq + 1)
        return (ms, 0)

    @staticmethod
    def _parse_trim(args, i):
        """
        Parse MAXLEN|MINID [=|~] threshold [LIMIT count] starting at args[i].

        Returns:
            tuple: (trim dict, index after the trim clause)
        """
        method = args[i].upper()
        i += 1
        approximate = False
        if i < len(args) and args[i] in (EXACT, APPROXIMATE):
            approximate = args[i] == APPROXIMATE
            i += 1
        if i >= len(args):
            raise CommandSyntaxError()

        if method == MAXLEN:
            threshold = _int_arg(args[i])
            if threshold < 0:
                raise CommandSyntaxError('The MAXLEN argument must be >= 0.')
        else:
            threshold = parse_stream_id(args[i])
        i += 1

        limit = 0
        if i < len(args) and args[i].upper() == LIMIT:
            if i + 1 >= len(args):
                raise CommandSyntaxError()
            limit = _int_arg(args[i + 1])
            if limit < 0:
                raise CommandSyntaxError('The LIMIT argument must be >= 0.')
            if not approximate:
                raise CommandSyntaxError(
                    'syntax error, LIMIT cannot be used without the special ~ option')
            i += 2

        trim = {'method': method, 'threshold': threshold,
                'approximate': approximate, 'limit': limit}
        return trim, i

    @staticmethod
    def _apply_trim(stream, trim):
        """Evict the oldest entries per the trim policy; return how many went."""
        ids = stream['ids']
        if trim['method'] == MAXLEN:
            evict = max(0, len(ids) - trim['threshold'])
        else:
            evict = bisect.bisect_left(ids, trim['threshold'])

        if trim['approximate'] and trim['limit'] > 0:
            evict = min(evict, trim['limit'])

        for id_tuple in ids[:evict]:
            del stream['entries'][id_tuple]
        del ids[:evict]
        return evict

    def _cmd_xadd(self, key, *args):
        """XADD key [NOMKSTREAM] [MAXLEN|MINID [=|~] threshold [LIMIT count]] id|* field value [...]"""
        make_stream = True
        trim = None
        i = 0
        while i < len(args):
            token = args[i].upper()
            if token == NOMKSTREAM:
                make_stream = False
                i += 1
            elif token in (MAXLEN, MINID):
                trim, i = self._parse_trim(args, i)
            else:
                break

        fields = args[i + 1:]
        if i >= len(args) or not fields or len(fields) % 2:
            raise WrongArityError('xadd')

        stream = self._lookup(key, TYPE_STREAM)
        if stream is None:
            if not make_stream:
                return reply.nil()
            stream = self._new_stream()

        if args[i] == AUTO_ID:
            new_id = self._next_auto_id(stream)
        else:
            new_id = parse_stream_id(args[i])
            if new_id == MIN_ID:
                raise StreamIdError('The ID specified in XADD must be greater than 0-0')
            if new_id <= stream['last_id']:
                raise StreamIdError(
                    'The ID specified in XADD is equal or smaller than the target stream top item')

        stream['ids'].append(new_id)
        stream['entries'][new_id] = [(fields[j], fields[j + 1]) for j in range(0, len(fields), 2)]
        stream['last_id'] = new_id

        if trim is not None:
            self._apply_trim(stream, trim)

        self._store(key, TYPE_STREAM, stream)
        return reply.bulk_string(format_stream_id(new_id))

    def _cmd_xtrim(self, key, *args):
        """XTRIM key MAXLEN|MINID [=|~] threshold [LIMIT count]"""
        if args[0].upper() not in (MAXLEN, MINID):
            raise CommandSyntaxError()
        trim, i = self._parse_trim(args, 0)
        if i != len(args):
            raise CommandSyntaxError()

        stream = self._lookup(key, TYPE_STREAM)
        if stream is None:
            return reply.integer(0)
        return reply.integer(self._apply_trim(stream, trim))

    def _cmd_xlen(self, key):
        """XLEN key"""
        stream = self._lookup(key, TYPE_STREAM)
        return reply.integer(len(stream['ids']) if stream else 0)

    @staticmethod
    def _entry_reply(id_tuple, fields):
        """[id, [field, value, ...]] or [id, nil] for a deleted entry."""
        if fields is None:
            body = reply.nil()
        else:
            body = reply.array([reply.bulk_string(token) for pair in fields for token in pair])
        return reply.array([reply.bulk_string(format_stream_id(id_tuple)), body])

    def _cmd_xrange(self, key, start, end, *args):
        """XRANGE key start end [COUNT count]"""
        count = None
        if args:
            if len(args) != 2 or args[0].upper() != COUNT:
                raise CommandSyntaxError()
            count = _int_arg(args[1])

        stream = self._lookup(key, TYPE_STREAM)
        if stream is None or count == 0:
            return reply.array([])

        start_id = parse_stream_id(start, missing_seq=0)
        end_id = parse_stream_id(end, missing_seq=MAX_ID[1])

        ids = stream['ids']
        lo = bisect.bisect_left(ids, start_id)
        hi = bisect.bisect_right(ids, end_id)
        selected = ids[lo:hi]
        if count is not None and count > 0:
            selected = selected[:count]
        return reply.array([self._entry_reply(i, stream['entries'][i]) for i in selected])

    # =========================================================================
    # Consumer Groups
    # =========================================================================

    def _cmd_xgroup(self, subcommand, *args):
        """XGROUP CREATE key group id|$ [MKSTREAM] | XGROUP DESTROY key group"""
        subcommand = subcommand.upper()

        if subcommand == 'CREATE':
            if len(args) < 3:
                raise WrongArityError('xgroup|create')
            key, group_name, start = args[0], args[1], args[2]
            mkstream = False
            for token in args[3:]:
                if token.upper() != 'MKSTREAM':
                    raise CommandSyntaxError()
                mkstream = True

            stream = self._lookup(key, TYPE_STREAM)
            if stream is None:
                if not mkstream:
                    raise StreamClientError(
                        'The XGROUP subcommand requires the key to exist. Note that for CREATE '
                        'you may want to use the MKSTREAM option to create an empty stream '
                        'automatically.')
                stream = self._new_stream()
                self._store(key, TYPE_STREAM, stream)

            if group_name in stream['groups']:
                raise BusyGroupError()

            last_delivered = stream['last_id'] if start == '$' else parse_stream_id(start)
            stream['groups'][group_name] = {
                'last_delivered': last_delivered,
                'pending': {},
                'consumers': set(),
            }
            return reply.OK_REPLY

        if subcommand == 'DESTROY':
            if len(args) != 2:
                raise WrongArityError('xgroup|destroy')
            stream = self._lookup(args[0], TYPE_STREAM)
            if stream is None:
                raise StreamClientError(
                    'The XGROUP subcommand requires the key to exist.')
            return reply.integer(1 if stream['groups'].pop(args[1], None) is not None else 0)

        raise CommandSyntaxError(f"unknown subcommand '{subcommand}'")

    def _cmd_xreadgroup(self, *args):
        """XREADGROUP GROUP group consumer [COUNT count] [NOACK] STREAMS key [key ...] id [id ...]"""
        if args[0].upper() != 'GROUP':
            raise CommandSyntaxError()
        group_name, consumer = args[1], args[2]

        count = 0
        noack = False
        i = 3
        while i < len(args) and args[i].upper() != 'STREAMS':
            token = args[i].upper()
            if token == COUNT and i + 1 < len(args):
                count = max(0, _int_arg(args[i + 1]))
                i += 2
            elif token == 'NOACK':
                noack = True
                i += 1
            elif token == 'BLOCK' and i + 1 < len(args):
                # Non-blocking store: BLOCK is accepted and ignored
                _int_arg(args[i + 1])
                i += 2
            else:
                raise CommandSyntaxError()

        rest = args[i + 1:]
        if i >= len(args) or not rest or len(rest) % 2:
            raise CommandSyntaxError(
                "Unbalanced 'xreadgroup' list of streams: for each stream key an ID or '>' "
                "must be specified.")
        half = len(rest) // 2
        keys, ids = rest[:half], rest[half:]

        now = self._clock()
        result = []
        for key, start in zip(keys, ids):
            stream, group = self._get_group(key, group_name)
            group['consumers'].add(consumer)

            if start == '>':
                lo = bisect.bisect_right(stream['ids'], group['last_delivered'])
                delivered = stream['ids'][lo:]
                if count:
                    delivered = delivered[:count]
                if not delivered:
                    continue
                group['last_delivered'] = delivered[-1]
                if not noack:
                    for id_tuple in delivered:
                        group['pending'][id_tuple] = [consumer, now, 1]
                entries = [self._entry_reply(i, stream['entries'][i]) for i in delivered]
            else:
                # History of this consumer's pending entries
                start_id = parse_stream_id(start)
                owned = sorted(id_tuple for id_tuple, nack in group['pending'].items()
                               if nack[0] == consumer and id_tuple > start_id)
                if count:
                    owned = owned[:count]
                entries = [self._entry_reply(i, stream['entries'].get(i)) for i in owned]

            result.append(reply.array([reply.bulk_string(key), reply.array(entries)]))

        if not result:
            return reply.nil()
        return reply.array(result)

    def _cmd_xack(self, key, group_name, *ids):
        """XACK key group id [id ...]"""
        stream = self._lookup(key, TYPE_STREAM)
        if stream is None or group_name not in stream['groups']:
            return reply.integer(0)
        pending = stream['groups'][group_name]['pending']
        acked = 0
        for token in ids:
            if pending.pop(parse_stream_id(token), None) is not None:
                acked += 1
        return reply.integer(acked)

    def _cmd_xpending(self, key, group_name, *args):
        """XPENDING key group [start end count [consumer]]"""
        _, group = self._get_group(key, group_name)
        pending = group['pending']

        if not args:
            if not pending:
                return reply.array([reply.integer(0), reply.nil(), reply.nil(), reply.nil()])
            ordered = sorted(pending)
            per_consumer = {}
            for id_tuple in ordered:
                name = pending[id_tuple][0]
                per_consumer[name] = per_consumer.get(name, 0) + 1
            return reply.array([
                reply.integer(len(ordered)),
                reply.bulk_string(format_stream_id(ordered[0])),
                reply.bulk_string(format_stream_id(ordered[-1])),
                reply.array([
                    reply.array([reply.bulk_string(name), reply.bulk_string(str(n))])
                    for name, n in sorted(per_consumer.items())
                ]),
            ])

        if len(args) not in (3, 4):
            raise CommandSyntaxError()
        start_id = parse_stream_id(args[0], missing_seq=0)
        end_id = parse_stream_id(args[1], missing_seq=MAX_ID[1])
        count = _int_arg(args[2])
        consumer = args[3] if len(args) == 4 else None

        now = self._clock()
        rows = []
        for id_tuple in sorted(pending):
            if len(rows) >= count:
                break
            owner, delivery_time, delivery_count = pending[id_tuple]
            if not start_id <= id_tuple <= end_id:
                continue
            if consumer is not None and owner != consumer:
                continue
            rows.append(reply.array([
                reply.bulk_string(format_stream_id(id_tuple)),
                reply.bulk_string(owner),
                reply.integer(max(0, now - delivery_time)),
                reply.integer(delivery_count),
            ]))
        return reply.array(rows)

    def _cmd_xclaim(self, key, group_name, consumer, min_idle, *args):
        """XCLAIM key group consumer min-idle-time id [id ...] [IDLE ms] [TIME ms]
        [RETRYCOUNT count] [FORCE] [JUSTID] [LASTID id]"""
        try:
            min_idle = max(0, parse_int(min_idle))
        except ValueError:
            raise NotIntegerError('Invalid min-idle-time argument for XCLAIM')

        # Ids run until the first token that does not parse as an id
        ids = []
        i = 0
        while i < len(args):
            try:
                ids.append(parse_stream_id(args[i]))
            except StreamIdError:
                break
            i += 1
        if not ids:
            raise StreamIdError()

        now = self._clock()
        delivery_time = None
        retry_count = None
        force = False
        justid = False
        last_id = None
        while i < len(args):
            token = args[i].upper()
            has_value = i + 1 < len(args)
            if token == IDLE and has_value:
                delivery_time = now - _int_arg(args[i + 1], 'Invalid IDLE option argument for XCLAIM')
                i += 2
            elif token == TIME and has_value:
                delivery_time = _int_arg(args[i + 1], 'Invalid TIME option argument for XCLAIM')
                i += 2
            elif token == RETRYCOUNT and has_value:
                retry_count = _int_arg(args[i + 1], 'Invalid RETRYCOUNT option argument for XCLAIM')
                if retry_count < 0:
                    raise NotIntegerError('Invalid RETRYCOUNT option argument for XCLAIM')
                i += 2
            elif token == FORCE:
                force = True
                i += 1
            elif token == JUSTID:
                justid = True
                i += 1
            elif token == 'LASTID' and has_value:
                last_id = parse_stream_id(args[i + 1])
                i += 2
            else:
                raise CommandSyntaxError(f"Unrecognized XCLAIM option '{args[i]}'")

        if delivery_time is None or delivery_time < 0 or delivery_time > now:
            delivery_time = now

        stream, group = self._get_group(key, group_name)
        pending = group['pending']

        if last_id is not None and last_id > group['last_delivered']:
            group['last_delivered'] = last_id

        claimed = []
        for id_tuple in ids:
            exists = id_tuple in stream['entries']
            nack = pending.get(id_tuple)
            created = False

            if nack is None:
                if not (force and exists):
                    continue
                nack = [consumer, now, 1]
                pending[id_tuple] = nack
                created = True

            if min_idle and now - nack[1] < min_idle:
                if created:
                    del pending[id_tuple]
                continue

            if not exists:
                # Entry was trimmed or deleted; drop it from the pending list
                del pending[id_tuple]
                continue

            nack[0] = consumer
            nack[1] = delivery_time
            if retry_count is not None:
                nack[2] = retry_count
            elif not justid:
                nack[2] += 1
            group['consumers'].add(consumer)

            if justid:
                claimed.append(reply.bulk_string(format_stream_id(id_tuple)))
            else:
                claimed.append(self._entry_reply(id_tuple, stream['entries'][id_tuple]))

        return reply.array(claimed)

    # =========================================================================
    # Sorted Sets
    # =========================================================================

    def _cmd_zadd(self, key, *args):
        """ZADD key score member [score member ...]"""
        if len(args) % 2:
            raise CommandSyntaxError()
        pairs = []
        for j in range(0, len(args), 2):
            try:
                score = float(args[j])
            except ValueError:
                raise StreamClientError('value is not a valid float')
            pairs.append((score, args[j + 1]))

        scores = self._lookup(key, TYPE_ZSET)
        if scores is None:
            scores = {}
            self._store(key, TYPE_ZSET, scores)

        added = 0
        for score, member in pairs:
            if member not in scores:
                added += 1
            scores[member] = score
        return reply.integer(added)

    def _cmd_zscan(self, key, cursor, *args):
        """ZSCAN key cursor [MATCH pattern] [COUNT count] [NOSCORES]"""
        try:
            position = parse_int(cursor)
        except ValueError:
            raise InvalidCursorError()
        if position < 0:
            raise InvalidCursorError()

        pattern = None
        count = DEFAULT_SCAN_COUNT
        no_scores = False
        i = 0
        while i < len(args):
            token = args[i].upper()
            if token == MATCH and i + 1 < len(args):
                pattern = args[i + 1]
                i += 2
            elif token == COUNT and i + 1 < len(args):
                count = _int_arg(args[i + 1])
                if count < 1:
                    raise CommandSyntaxError()
                i += 2
            elif token == NOSCORES:
                no_scores = True
                i += 1
            else:
                raise CommandSyntaxError()

        scores = self._lookup(key, TYPE_ZSET)
        if not scores:
            return reply.array([reply.bulk_string('0'), reply.array([])])

        ordered = sorted(scores.items(), key=lambda item: (item[1], item[0]))
        window = ordered[position:position + count]
        next_cursor = position + count if position + count < len(ordered) else 0

        items = []
        for member, score in window:
            if pattern is not None and not glob_match(pattern, member):
                continue
            items.append(reply.bulk_string(member))
            if not no_scores:
                items.append(reply.bulk_string(format_score(score)))

        return reply.array([reply.bulk_string(str(next_cursor)), reply.array(items)])
