"""Score spoken file references against the recent-file history."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from models import RecentFileEntry

EXACT = 100
PREFIX = 80
WORD = 60
SUBSTRING = 40
ALL_WORDS = 20
NO_MATCH = 0

_EXTENSION_RE = re.compile(r"\.(?:pdf|docx?|txt|rtf|odt|epub|xps)$", re.IGNORECASE)
_DELIMITER_RE = re.compile(r"[\s_\-.]+")


def _fold(text: str) -> str:
    return " ".join((text or "").lower().split())


def strip_extension(name: str) -> str:
    return _EXTENSION_RE.sub("", name)


def score(name: str, query: str) -> int:
    """Match quality of ``query`` against a file name, 0 when unrelated.

    The name is compared case-folded with its extension removed; an exact
    match is also accepted against the full name so "report.pdf" finds
    "Report.pdf".
    """
    q = _fold(query)
    if not q:
        return NO_MATCH
    full = _fold(name)
    stem = strip_extension(full)

    if stem == q or full == q:
        return EXACT
    if stem.startswith(q):
        return PREFIX
    words = [w for w in _DELIMITER_RE.split(stem) if w]
    if any(w.startswith(q) for w in words):
        return WORD
    if q in stem:
        return SUBSTRING
    if all(part in stem for part in q.split()):
        return ALL_WORDS
    return NO_MATCH


def search(query: str, entries: Iterable[RecentFileEntry]) -> List[RecentFileEntry]:
    """Matching entries, best score first, most recently opened first on ties."""
    scored: List[Tuple[int, RecentFileEntry]] = []
    for entry in entries:
        value = score(entry.name, query)
        if value > NO_MATCH:
            scored.append((value, entry))
    scored.sort(key=lambda pair: (pair[0], pair[1].opened_at), reverse=True)
    return [entry for _, entry in scored]


def best_match(query: str, entries: Iterable[RecentFileEntry]) -> Optional[RecentFileEntry]:
    results = search(query, entries)
    return results[0] if results else None
