"""In-memory page selection for the page grid."""

from __future__ import annotations

import threading
from typing import Callable, FrozenSet, Iterable, Optional

from page_numbers import all_pages

ChangeCallback = Callable[[FrozenSet[int]], None]


class SelectionStore:
    """Selected 1-indexed page numbers."""

    def __init__(self, on_change: Optional[ChangeCallback] = None) -> None:
        self._lock = threading.Lock()
        self._selected: FrozenSet[int] = frozenset()
        self._on_change = on_change

    @property
    def selected(self) -> FrozenSet[int]:
        return self._selected

    def set_selection(self, pages: Iterable[int]) -> None:
        pages = frozenset(pages)
        self._update(lambda _: pages)

    def clear(self) -> None:
        self._update(lambda _: frozenset())

    def select_all(self, page_count: int) -> None:
        self._update(lambda _: all_pages(page_count))

    def invert(self, page_count: int) -> None:
        self._update(lambda current: all_pages(page_count) - current)

    def toggle(self, page: int) -> None:
        self._update(lambda current: current ^ {page})

    def _update(self, change: Callable[[FrozenSet[int]], FrozenSet[int]]) -> None:
        # read and write happen under one lock hold
        with self._lock:
            pages = frozenset(change(self._selected))
            self._selected = pages
        if self._on_change:
            self._on_change(pages)
