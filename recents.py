"""Bounded most-recently-used history of opened files."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import fuzzy_match
from interfaces import RecentsStore
from models import RecentFileEntry

logger = logging.getLogger(__name__)

MAX_RECENTS = 20


class JsonRecentsStore:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[RecentFileEntry]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return [RecentFileEntry.from_dict(item) for item in data]
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as exc:
            logger.warning("discarding unreadable recents file %s: %s", self._path, exc)
            return []

    def save(self, entries: List[RecentFileEntry]) -> None:
        payload = [entry.to_dict() for entry in entries]
        self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


class RecentFiles:
    """Recent files, newest first, unique by path, at most ``capacity`` long.

    The list is loaded from ``store`` once and written back after every
    mutation.
    """

    def __init__(
        self,
        store: RecentsStore,
        capacity: int = MAX_RECENTS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._capacity = capacity
        self._clock = clock
        self._entries: List[RecentFileEntry] = self._dedupe(store.load())[:capacity]

    @property
    def entries(self) -> List[RecentFileEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, name: str, path: str) -> RecentFileEntry:
        entry = RecentFileEntry(name=name, path=path, opened_at=self._clock())
        self._entries = [e for e in self._entries if e.path != path]
        self._entries.insert(0, entry)
        del self._entries[self._capacity:]
        self._save()
        return entry

    def remove(self, path: str) -> None:
        self._entries = [e for e in self._entries if e.path != path]
        self._save()

    def clear(self) -> None:
        self._entries = []
        self._save()

    def search(self, query: str) -> List[RecentFileEntry]:
        return fuzzy_match.search(query, self._entries)

    def best_match(self, query: str) -> Optional[RecentFileEntry]:
        return fuzzy_match.best_match(query, self._entries)

    def _save(self) -> None:
        try:
            self._store.save(list(self._entries))
        except OSError as exc:
            logger.warning("could not save recents: %s", exc)

    @staticmethod
    def _dedupe(entries: List[RecentFileEntry]) -> List[RecentFileEntry]:
        seen = set()
        result = []
        for entry in entries:
            if entry.path in seen:
                continue
            seen.add(entry.path)
            result.append(entry)
        return result
