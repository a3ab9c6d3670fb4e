"""Protocol interfaces for the speech bridge and app collaborators."""

from __future__ import annotations

from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Protocol

from models import BridgeEvent, RecentFileEntry


class SpeechBridge(Protocol):
    def request_permission(self) -> bool: ...

    def is_available(self) -> bool: ...

    def start(self, on_event: Callable[[BridgeEvent], None]) -> bool: ...

    def stop(self) -> None: ...


class RecentsStore(Protocol):
    def load(self) -> List[RecentFileEntry]: ...

    def save(self, entries: List[RecentFileEntry]) -> None: ...


class Selection(Protocol):
    @property
    def selected(self) -> FrozenSet[int]: ...

    def set_selection(self, pages: Iterable[int]) -> None: ...

    def clear(self) -> None: ...

    def invert(self, page_count: int) -> None: ...


# File actions and extraction may return a concurrent.futures.Future.
class FileActions(Protocol):
    def open_file_picker(self) -> Any: ...

    def open_file(self, path: str) -> Any: ...

    def close_document(self) -> None: ...


class Extractor(Protocol):
    def extract(self, custom_name: Optional[str] = None) -> Any: ...


class Navigator(Protocol):
    def open_settings(self) -> None: ...

    def show_help(self) -> None: ...

    def show_paywall(self) -> None: ...

    def go_to_page(self, page: int) -> None: ...

    def dismiss_session(self) -> None: ...
