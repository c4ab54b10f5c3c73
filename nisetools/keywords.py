"""Keyword matching and value extraction for line-oriented input files.

A line starts with a label, the text up to the first space. A keyword
matches a line when the label is a prefix of the keyword. A label that
runs to the end of the line includes its newline, so a bare keyword with
nothing after it does not match.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Pattern, TypeVar

_T = TypeVar("_T")

_WORD = re.compile(r"\s*(\S+)")
_INT = re.compile(r"\s*([+-]?[0-9]+)")
_FLOAT = re.compile(
    r"\s*([+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


def label_length(line: str) -> int:
    """Return the number of characters before the first space of ``line``."""
    index = line.find(" ")
    return len(line) if index < 0 else index


def matches(keyword: str, line: str) -> bool:
    """Tell whether the label of ``line`` selects ``keyword``."""
    return keyword.startswith(line[: label_length(line)])


def _value_text(line: str) -> str:
    return line[label_length(line):].lstrip(" ")


def _leading(pattern: Pattern[str], text: str, convert: Callable[[str], _T], default: _T) -> _T:
    found = pattern.match(text)
    return convert(found.group(1)) if found else default


def _scan_after_label(line: str, count: int, pattern: Pattern[str], convert: Callable[[str], _T]) -> tuple:
    """Skip the first word, then read up to ``count`` values, stopping at the first failure."""
    first = _WORD.match(line)
    if first is None:
        return ()
    position = first.end()
    values = []
    for _ in range(count):
        found = pattern.match(line, position)
        if found is None:
            break
        values.append(convert(found.group(1)))
        position = found.end()
    return tuple(values)


def keyword_string(keyword: str, line: str) -> Optional[str]:
    """Return the second word of ``line`` if ``keyword`` matches.

    Returns ``None`` when the keyword does not match and an empty string
    when it matches but no value follows.
    """
    if not matches(keyword, line):
        return None
    values = _scan_after_label(line, 1, _WORD, str)
    return values[0] if values else ""


def keyword_int(keyword: str, line: str) -> Optional[int]:
    """Return the integer after the label, 0 if none can be read, or ``None`` on no match."""
    if not matches(keyword, line):
        return None
    return _leading(_INT, _value_text(line), int, 0)


def keyword_float(keyword: str, line: str) -> Optional[float]:
    """Return the number after the label, 0.0 if none can be read, or ``None`` on no match."""
    if not matches(keyword, line):
        return None
    return _leading(_FLOAT, _value_text(line), float, 0.0)


def keyword_three_ints(keyword: str, line: str) -> Optional[tuple]:
    """Return up to three integers following the label, or ``None`` on no match.

    Reading stops at the first value that is not an integer, so the tuple
    may be shorter than three.
    """
    if not matches(keyword, line):
        return None
    return _scan_after_label(line, 3, _INT, int)


def keyword_three_floats(keyword: str, line: str) -> Optional[tuple]:
    """Return up to three numbers following the label, or ``None`` on no match."""
    if not matches(keyword, line):
        return None
    return _scan_after_label(line, 3, _FLOAT, float)