"""Spoken number resolution and page-set helpers."""

from __future__ import annotations

from typing import FrozenSet, Optional

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
}

ORDINAL_WORDS = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
    "seventh": 7,
    "eighth": 8,
    "ninth": 9,
    "tenth": 10,
    "eleventh": 11,
    "twelfth": 12,
    "thirteenth": 13,
    "fourteenth": 14,
    "fifteenth": 15,
    "sixteenth": 16,
    "seventeenth": 17,
    "eighteenth": 18,
    "nineteenth": 19,
    "twentieth": 20,
}


def parse_number(token: str) -> Optional[int]:
    """Resolve a digit string or a number word (cardinal or ordinal)."""
    t = (token or "").strip().lower()
    if not t:
        return None
    if t.isdigit():
        return int(t)
    # "1st", "2nd", "3rd", "4th"
    if t[:-2].isdigit() and t[-2:] in ("st", "nd", "rd", "th"):
        return int(t[:-2])
    if t in NUMBER_WORDS:
        return NUMBER_WORDS[t]
    return ORDINAL_WORDS.get(t)


def page_range(start: int, end: int, page_count: int) -> FrozenSet[int]:
    """Inclusive range clamped into [1, page_count]; empty when inverted."""
    lo = max(1, start)
    hi = min(end, page_count)
    return frozenset(range(lo, hi + 1))


def all_pages(page_count: int) -> FrozenSet[int]:
    return frozenset(range(1, page_count + 1))


def odd_pages(page_count: int) -> FrozenSet[int]:
    return frozenset(range(1, page_count + 1, 2))


def even_pages(page_count: int) -> FrozenSet[int]:
    return frozenset(range(2, page_count + 1, 2))


def in_range(page: Optional[int], page_count: int) -> bool:
    return page is not None and 1 <= page <= page_count
