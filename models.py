"""Core data models for the voice command engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Union


class RecognitionState(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    ERROR = "ERROR"


class VoiceContext(str, Enum):
    HOME = "home"
    PAGE_GRID = "page_grid"


class BridgeEventKind(str, Enum):
    TRANSCRIPTION = "transcription"
    STATE_CHANGE = "state_change"
    ERROR = "error"


@dataclass
class BridgeEvent:
    kind: str
    text: str = ""
    state: str = ""
    code: str = ""
    message: str = ""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class OpenSettings:
    pass


@dataclass(frozen=True)
class ShowHelp:
    pass


@dataclass(frozen=True)
class ShowPaywall:
    pass


@dataclass(frozen=True)
class CloseDocument:
    pass


@dataclass(frozen=True)
class OpenFilePicker:
    pass


@dataclass(frozen=True)
class OpenRecentByName:
    query: str


@dataclass(frozen=True)
class SelectPages:
    pages: FrozenSet[int]


@dataclass(frozen=True)
class AddPages:
    pages: FrozenSet[int]


@dataclass(frozen=True)
class RemovePages:
    pages: FrozenSet[int]


@dataclass(frozen=True)
class ClearSelection:
    pass


@dataclass(frozen=True)
class InvertSelection:
    pass


@dataclass(frozen=True)
class GoToPage:
    page: int


@dataclass(frozen=True)
class Extract:
    pass


@dataclass(frozen=True)
class ExtractWithName:
    name: str


@dataclass(frozen=True)
class Unrecognized:
    pass


Command = Union[
    Cancel,
    OpenSettings,
    ShowHelp,
    ShowPaywall,
    CloseDocument,
    OpenFilePicker,
    OpenRecentByName,
    SelectPages,
    AddPages,
    RemovePages,
    ClearSelection,
    InvertSelection,
    GoToPage,
    Extract,
    ExtractWithName,
    Unrecognized,
]

SHARED_COMMANDS = (Cancel, OpenSettings, ShowHelp, ShowPaywall, CloseDocument, Unrecognized)
HOME_COMMANDS = (OpenFilePicker, OpenRecentByName)
PAGE_GRID_COMMANDS = (
    SelectPages,
    AddPages,
    RemovePages,
    ClearSelection,
    InvertSelection,
    GoToPage,
    Extract,
    ExtractWithName,
)


def is_legal(command: Command, context: VoiceContext) -> bool:
    """Whether ``command`` may be produced while in ``context``."""
    if isinstance(command, SHARED_COMMANDS):
        return True
    if context == VoiceContext.HOME:
        return isinstance(command, HOME_COMMANDS)
    return isinstance(command, PAGE_GRID_COMMANDS)


# ---------------------------------------------------------------------------
# Recents / dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecentFileEntry:
    name: str
    path: str
    opened_at: datetime

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "openedAt": self.opened_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecentFileEntry":
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            opened_at=datetime.fromisoformat(str(data["openedAt"])),
        )


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    feedback: str
    should_dismiss: bool = False
