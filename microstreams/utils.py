"""
MicroStreams Utility Functions

Shared helpers for pattern matching, token conversion and the in-memory
executor's bookkeeping.
"""

import time


def glob_match(pattern, text):
    """
    Match text against a glob-style pattern (SCAN family MATCH semantics).

    Supports:
    - * : any sequence of characters (including empty)
    - ? : exactly one character
    - [abc], [a-z], [^abc] : character classes
    - \\ : escapes the next character

    Args:
        pattern: str - Glob pattern
        text: str - Text to match

    Returns:
        bool: True if text matches pattern
    """
    if not pattern:
        return not text

    pi = 0
    ti = 0
    star_pi = -1
    star_ti = -1

    while ti < len(text):
        if pi < len(pattern):
            pc = pattern[pi]

            if pc == '*':
                star_pi = pi + 1
                star_ti = ti
                pi += 1
                continue

            elif pc == '?':
                pi += 1
                ti += 1
                continue

            elif pc == '[':
                matched, class_end = _match_char_class(pattern, pi, text[ti])
                if matched:
                    pi = class_end
                    ti += 1
                    continue

            elif pc == '\\':
                pi += 1
                if pi < len(pattern) and pattern[pi] == text[ti]:
                    pi += 1
                    ti += 1
                    continue

            elif pc == text[ti]:
                pi += 1
                ti += 1
                continue

        # Backtrack to the last *
        if star_pi != -1:
            pi = star_pi
            star_ti += 1
            ti = star_ti
        else:
            return False

    while pi < len(pattern) and pattern[pi] == '*':
        pi += 1

    return pi == len(pattern)


def _match_char_class(pattern, start, char):
    """
    Match one character against the class opening at pattern[start].

    Returns:
        tuple: (matched, position after the closing ']')
    """
    end = start + 1
    while end < len(pattern) and pattern[end] != ']':
        end += 2 if pattern[end] == '\\' and end + 1 < len(pattern) else 1

    if end >= len(pattern):
        # Unclosed bracket is a literal '['
        return (char == '[', start + 1)

    i = start + 1
    negate = i < end and pattern[i] == '^'
    if negate:
        i += 1

    matched = False
    while i < end:
        if pattern[i] == '\\' and i + 1 < end:
            matched = matched or pattern[i + 1] == char
            i += 2
        elif i + 2 < end and pattern[i + 1] == '-':
            low, high = pattern[i], pattern[i + 2]
            if low > high:
                low, high = high, low
            matched = matched or low <= char <= high
            i += 3
        else:
            matched = matched or pattern[i] == char
            i += 1

    return (matched != negate, end + 1)


def to_str(value, encoding='utf-8', errors='strict'):
    """
    Convert a reply payload or argument to str.

    Args:
        value: str, bytes, or other
        encoding: str - Encoding used for bytes
        errors: str - Codec error handler for bytes

    Returns:
        str
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode(encoding, errors)
    return str(value)


def parse_int(value):
    """
    Parse a strict integer argument.

    Raises:
        ValueError: if value is not an integer token
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = to_str(value).strip()
    if not text or text != to_str(value) or not text.isascii():
        raise ValueError(f'not an integer: {value!r}')
    return int(text)


def flatten_pairs(values):
    """
    Flatten [[field, value], ...] into [field, value, ...].

    Arity of each pair is not checked; the store rejects malformed input.
    """
    args = []
    for pair in values:
        args.extend(pair)
    return args


def format_score(score):
    """
    Render a sorted-set score the way the store does ('1', '1.5', 'inf').
    """
    if score == float('inf'):
        return 'inf'
    if score == float('-inf'):
        return '-inf'
    if float(score).is_integer():
        return str(int(score))
    return repr(float(score))


def get_timestamp_ms():
    """
    Get current wall-clock timestamp in milliseconds.

    Returns:
        int: Unix time in milliseconds
    """
    return int(time.time() * 1000)
