"""Lightweight command parsing helpers for kitsh."""

from __future__ import annotations

from typing import List, Optional, Tuple

QUOTE_CHARS = ("'", '"')
OPTION_PREFIX = "-"

Span = Tuple[int, int]


def token_spans(line: str) -> List[Span]:
    """Return ``(start, end)`` offsets of each raw token in *line*.

    Whitespace inside a single- or double-quoted span does not split.  The
    first quote character opens a span and only the same character closes
    it; an unterminated span runs to the end of the line.
    """
    spans: List[Span] = []
    start: Optional[int] = None
    quote = ""
    for index, char in enumerate(line):
        if quote:
            if char == quote:
                quote = ""
            continue
        if char.isspace():
            if start is not None:
                spans.append((start, index))
                start = None
            continue
        if start is None:
            start = index
        if char in QUOTE_CHARS:
            quote = char
    if start is not None:
        spans.append((start, len(line)))
    return spans


def split_command(line: str) -> List[str]:
    """Split a console line into argv tokens.

    Each token loses the enclosing quotes of the kind that opened it.
    """
    return [_strip_quotes(line[start:end]) for start, end in token_spans(line)]


def split_payload(line: str, count: int) -> Optional[str]:
    """Raw text of *line* after its first *count* tokens, or None.

    A remainder that is one whole quoted token loses its enclosing quotes so
    ``'{"a": 1}'`` reads as the JSON inside it.
    """
    spans = token_spans(line)
    if count >= len(spans):
        return None
    rest = spans[count:]
    if len(rest) == 1:
        start, end = rest[0]
        return _strip_quotes(line[start:end])
    return line[rest[0][0]:].rstrip()


def _strip_quotes(token: str) -> str:
    if not token or token[0] not in QUOTE_CHARS:
        return token
    close = token.find(token[0], 1)
    if close == -1:
        return token[1:]
    if close == len(token) - 1:
        return token[1:-1]
    # quoted span followed by more text, e.g. a JSON fragment like "b"}
    return token


def strip_global_options(argv: List[str]) -> List[str]:
    """Drop leading option tokens; the session already applied them."""
    index = 0
    while index < len(argv) and argv[index].startswith(OPTION_PREFIX):
        index += 1
    return argv[index:]
