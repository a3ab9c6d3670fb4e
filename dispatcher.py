"""Route parsed commands to the app capabilities wired for the current screen."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Optional

from interfaces import Extractor, FileActions, Navigator, Selection
from models import (
    AddPages,
    Cancel,
    ClearSelection,
    CloseDocument,
    Command,
    DispatchResult,
    Extract,
    ExtractWithName,
    GoToPage,
    InvertSelection,
    OpenFilePicker,
    OpenRecentByName,
    OpenSettings,
    RemovePages,
    SelectPages,
    ShowHelp,
    ShowPaywall,
)
from recents import RecentFiles

logger = logging.getLogger(__name__)


def _plural(count: int, word: str = "page") -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _wait(result: Any) -> None:
    if isinstance(result, Future):
        result.result()


def _ok(feedback: str) -> DispatchResult:
    return DispatchResult(success=True, feedback=feedback, should_dismiss=True)


def _fail(feedback: str) -> DispatchResult:
    return DispatchResult(success=False, feedback=feedback, should_dismiss=False)


class CommandDispatcher:
    """Executes a command against optional collaborators.

    Every collaborator is optional because each host screen wires only the
    capabilities it has; a command whose collaborator is missing fails with
    a "Cannot ... here" result.  The dispatcher keeps no state of its own
    besides these references.
    """

    def __init__(
        self,
        page_count: int = 0,
        selection: Optional[Selection] = None,
        files: Optional[FileActions] = None,
        extractor: Optional[Extractor] = None,
        navigator: Optional[Navigator] = None,
        recents: Optional[RecentFiles] = None,
    ) -> None:
        self.page_count = page_count
        self._selection = selection
        self._files = files
        self._extractor = extractor
        self._navigator = navigator
        self._recents = recents

    def dispatch(self, command: Command) -> DispatchResult:
        logger.info("dispatching %s", command)
        try:
            result = self._route(command)
        except Exception as exc:
            logger.warning("command %s failed: %s", command, exc)
            return _fail(f"Command failed: {exc}")
        logger.debug("result %s", result)
        return result

    def _route(self, command: Command) -> DispatchResult:  # noqa: C901
        # Flow and navigation
        if isinstance(command, Cancel):
            if self._navigator is not None:
                self._navigator.dismiss_session()
            return _ok("Cancelled")
        if isinstance(command, OpenSettings):
            if self._navigator is None:
                return _fail("Cannot open settings here")
            self._navigator.open_settings()
            return _ok("Opening settings")
        if isinstance(command, ShowHelp):
            if self._navigator is None:
                return _fail("Cannot show help here")
            self._navigator.show_help()
            return _ok("Showing help")
        if isinstance(command, ShowPaywall):
            if self._navigator is None:
                return _fail("Cannot open premium here")
            self._navigator.show_paywall()
            return _ok("Opening premium")
        if isinstance(command, CloseDocument):
            if self._files is None:
                return _fail("Cannot close document here")
            self._files.close_document()
            return _ok("Closing document")

        # Home
        if isinstance(command, OpenFilePicker):
            if self._files is None:
                return _fail("Cannot open file picker here")
            _wait(self._files.open_file_picker())
            return _ok("Opening file picker")
        if isinstance(command, OpenRecentByName):
            return self._open_recent(command.query)

        # Page grid
        if isinstance(command, (SelectPages, AddPages, RemovePages, ClearSelection, InvertSelection)):
            return self._edit_selection(command)
        if isinstance(command, GoToPage):
            if self._navigator is None:
                return _fail("Cannot go to a page here")
            if command.page < 1:
                return _fail("Invalid page number")
            self._navigator.go_to_page(command.page)
            return _ok(f"Going to page {command.page}")
        if isinstance(command, (Extract, ExtractWithName)):
            return self._extract(command)

        # Unrecognized
        return _fail("Command not recognized")

    def _open_recent(self, query: str) -> DispatchResult:
        if self._recents is None or len(self._recents) == 0:
            return _fail("No recent files found")
        match = self._recents.best_match(query)
        if match is None:
            return _fail(f'No recent file matching "{query}"')
        if self._files is None:
            return _fail("Cannot open files here")
        _wait(self._files.open_file(match.path))
        return _ok(f'Opening "{match.name}"')

    def _edit_selection(self, command: Command) -> DispatchResult:
        selection = self._selection
        if selection is None:
            return _fail("Cannot change the selection here")

        if isinstance(command, SelectPages):
            if not command.pages:
                return _fail("Could not parse page selection")
            selection.set_selection(command.pages)
            return _ok(f"Selected {_plural(len(command.pages))}")
        if isinstance(command, AddPages):
            if not command.pages:
                return _fail("Could not parse pages to add")
            selection.set_selection(selection.selected | command.pages)
            return _ok(f"Added {_plural(len(command.pages))}")
        if isinstance(command, RemovePages):
            if not command.pages:
                return _fail("Could not parse pages to remove")
            selection.set_selection(selection.selected - command.pages)
            return _ok(f"Removed {_plural(len(command.pages))}")
        if isinstance(command, ClearSelection):
            selection.clear()
            return _ok("Selection cleared")
        selection.invert(self.page_count)
        return _ok(f"Selection inverted ({_plural(len(selection.selected))})")

    def _extract(self, command: Command) -> DispatchResult:
        if self._selection is None or not self._selection.selected:
            return _fail("No pages selected to extract")
        if self._extractor is None:
            return _fail("Cannot extract here")
        if isinstance(command, ExtractWithName):
            _wait(self._extractor.extract(custom_name=command.name))
            return _ok(f'Extracting as "{command.name}"')
        count = len(self._selection.selected)
        _wait(self._extractor.extract())
        return _ok(f"Extracting {_plural(count)}")
