"""Turn a spoken transcript into a typed command.

Parsing is a pure function of ``(text, page_count, context)``.  Rules are
tried in the order of ``RULES``; the first rule returning a command wins and
a rule that cannot resolve its numbers returns ``None`` so later rules get a
chance.  Each rule is tagged with the contexts it is legal in, so a Home
transcript can never yield a page-grid command and vice versa.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from models import (
    AddPages,
    Cancel,
    ClearSelection,
    CloseDocument,
    Command,
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
    Unrecognized,
    VoiceContext,
)
from page_numbers import all_pages, even_pages, in_range, odd_pages, page_range, parse_number

BOTH = (VoiceContext.HOME, VoiceContext.PAGE_GRID)
HOME = (VoiceContext.HOME,)
GRID = (VoiceContext.PAGE_GRID,)

CANCEL_PHRASES = {"cancel", "stop", "nevermind", "never mind", "cancel that", "forget it"}
SETTINGS_PHRASES = {"settings", "open settings", "go to settings", "show settings"}
HELP_PHRASES = {"help", "show help", "what can i say", "commands", "show commands"}
PAYWALL_PHRASES = {"upgrade", "premium", "go premium", "get premium", "unlock"}
CLOSE_PHRASES = {"close", "close document", "close file", "go back", "back", "exit"}

FILE_PICKER_PHRASES = {
    "find document",
    "find a document",
    "find file",
    "find a file",
    "open file",
    "open a file",
    "open document",
    "open a document",
    "pick file",
    "pick a file",
    "select pdf",
    "select a pdf",
    "choose file",
    "choose a file",
    "browse",
    "browse files",
}

ALL_PHRASES = {"all", "all pages", "every page", "everything"}
ODD_PHRASES = {"odd", "odd pages", "odd numbered pages", "odd-numbered pages"}
EVEN_PHRASES = {"even", "even pages", "even numbered pages", "even-numbered pages"}
FIRST_PHRASES = {"first", "first page"}
LAST_PHRASES = {"last", "last page"}

CLEAR_PHRASES = {
    "clear",
    "clear selection",
    "clear all",
    "deselect",
    "deselect all",
    "unselect",
    "unselect all",
    "select none",
}
INVERT_PHRASES = {"invert", "invert selection", "flip", "flip selection", "opposite", "reverse selection"}
EXTRACT_PHRASES = {
    "extract",
    "extract pages",
    "extract selection",
    "save",
    "save pages",
    "export",
    "export pages",
    "done",
}

_OPEN_RE = re.compile(r"open\s+(?:the\s+)?(.+)")
_RANGE_RE = re.compile(r"(?:pages?\s+)?(?:from\s+)?(\w+)\s+(?:through|to|thru)\s+(?:page\s+)?(\w+)")
_DASH_RE = re.compile(r"(?:pages?\s+)?(\d+)\s*-\s*(\d+)")
_SINGLE_RE = re.compile(r"(?:pages?\s+)?(?:number\s+)?(\w+)")
_LIST_RE = re.compile(r"(?:pages?\s+)?(.+)")
_ADD_RE = re.compile(r"add\s+(?:page\s+)?(?:number\s+)?(\w+)")
_REMOVE_RE = re.compile(r"(?:remove|deselect|unselect)\s+(?:page\s+)?(?:number\s+)?(\w+)")
_GO_TO_RE = re.compile(r"(?:go|jump|scroll|skip)\s+to\s+(?:page\s+)?(?:number\s+)?(\w+)")
_SAVE_AS_RE = re.compile(
    r"(?:save\s+(?:it\s+)?as|export\s+as|extract\s+as|name\s+it|call\s+it"
    r"|extract\s+(?:and\s+)?(?:rename|name))\s+(.+)"
)

_STRIP_RE = re.compile(r"[^\w\s'\-]")


def normalize(text: str) -> str:
    """Lowercase, drop punctuation and filler, collapse whitespace."""
    t = (text or "").lower().replace(",", " ")
    t = t.replace("\u2013", "-").replace("\u2014", "-")
    t = _STRIP_RE.sub(" ", t)
    t = " ".join(t.split())
    if t.startswith("please "):
        t = t[len("please "):]
    if t.endswith(" please"):
        t = t[: -len(" please")]
    return t


def _selection_phrase(text: str) -> str:
    for prefix in ("select ", "the "):
        if text.startswith(prefix):
            text = text[len(prefix):]
    return text


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _flow(text: str, page_count: int) -> Optional[Command]:
    if text in CANCEL_PHRASES:
        return Cancel()
    if text in SETTINGS_PHRASES:
        return OpenSettings()
    if text in HELP_PHRASES:
        return ShowHelp()
    if text in PAYWALL_PHRASES:
        return ShowPaywall()
    return None


def _close(text: str, page_count: int) -> Optional[Command]:
    if text in CLOSE_PHRASES:
        return CloseDocument()
    return None


def _file_picker(text: str, page_count: int) -> Optional[Command]:
    if text in FILE_PICKER_PHRASES:
        return OpenFilePicker()
    return None


def _open_recent(text: str, page_count: int) -> Optional[Command]:
    match = _OPEN_RE.fullmatch(text)
    if match is None:
        return None
    query = match.group(1).strip()
    if not query:
        return None
    return OpenRecentByName(query=query)


def _selection_keyword(text: str, page_count: int) -> Optional[Command]:
    phrase = _selection_phrase(text)
    if phrase in ALL_PHRASES:
        return SelectPages(all_pages(page_count))
    if phrase in ODD_PHRASES:
        return SelectPages(odd_pages(page_count))
    if phrase in EVEN_PHRASES:
        return SelectPages(even_pages(page_count))
    if phrase in FIRST_PHRASES:
        return SelectPages(frozenset({1}) if page_count >= 1 else frozenset())
    if phrase in LAST_PHRASES:
        return SelectPages(frozenset({page_count}) if page_count >= 1 else frozenset())
    return None


def _page_range(text: str, page_count: int) -> Optional[Command]:
    phrase = _selection_phrase(text)
    match = _RANGE_RE.fullmatch(phrase) or _DASH_RE.fullmatch(phrase)
    if match is None:
        return None
    start = parse_number(match.group(1))
    end = parse_number(match.group(2))
    if start is None or end is None or start > end:
        return None
    return SelectPages(page_range(start, end, page_count))


def _single_page(text: str, page_count: int) -> Optional[Command]:
    match = _SINGLE_RE.fullmatch(_selection_phrase(text))
    if match is None:
        return None
    page = parse_number(match.group(1))
    if not in_range(page, page_count):
        return None
    return SelectPages(frozenset({page}))


def _page_list(text: str, page_count: int) -> Optional[Command]:
    match = _LIST_RE.fullmatch(_selection_phrase(text))
    if match is None:
        return None
    tokens = [t for t in match.group(1).split() if t != "and"]
    if len(tokens) < 2:
        return None
    pages = [parse_number(t) for t in tokens]
    if not all(in_range(p, page_count) for p in pages):
        return None
    return SelectPages(frozenset(pages))


def _add_or_remove(text: str, page_count: int) -> Optional[Command]:
    for pattern, variant in ((_ADD_RE, AddPages), (_REMOVE_RE, RemovePages)):
        match = pattern.fullmatch(text)
        if match is None:
            continue
        page = parse_number(match.group(1))
        if in_range(page, page_count):
            return variant(frozenset({page}))
        return None
    return None


def _go_to_page(text: str, page_count: int) -> Optional[Command]:
    match = _GO_TO_RE.fullmatch(text)
    if match is None:
        return None
    page = parse_number(match.group(1))
    if page is None or page < 1:
        return None
    return GoToPage(page=page)


def _selection_edit(text: str, page_count: int) -> Optional[Command]:
    if text in CLEAR_PHRASES:
        return ClearSelection()
    if text in INVERT_PHRASES:
        return InvertSelection()
    return None


def _extract(text: str, page_count: int) -> Optional[Command]:
    match = _SAVE_AS_RE.fullmatch(text)
    if match is not None:
        name = match.group(1).strip()
        if name:
            return ExtractWithName(name=name)
    if text in EXTRACT_PHRASES:
        return Extract()
    return None


class Rule(NamedTuple):
    name: str
    contexts: Tuple[VoiceContext, ...]
    match: Callable[[str, int], Optional[Command]]


RULES: Tuple[Rule, ...] = (
    Rule("flow", BOTH, _flow),
    Rule("close", GRID, _close),
    Rule("file_picker", HOME, _file_picker),
    Rule("open_recent", HOME, _open_recent),
    Rule("selection_keyword", GRID, _selection_keyword),
    Rule("page_range", GRID, _page_range),
    Rule("single_page", GRID, _single_page),
    Rule("page_list", GRID, _page_list),
    Rule("add_remove", GRID, _add_or_remove),
    Rule("go_to_page", GRID, _go_to_page),
    Rule("selection_edit", GRID, _selection_edit),
    Rule("extract", GRID, _extract),
)

_RULES_BY_CONTEXT: Dict[VoiceContext, Tuple[Rule, ...]] = {
    context: tuple(rule for rule in RULES if context in rule.contexts)
    for context in VoiceContext
}


def rule_names(context: VoiceContext) -> List[str]:
    return [rule.name for rule in _RULES_BY_CONTEXT[context]]


def parse_command(
    text: str,
    page_count: int,
    context: VoiceContext = VoiceContext.PAGE_GRID,
) -> Command:
    normalized = normalize(text)
    if not normalized:
        return Unrecognized()
    for rule in _RULES_BY_CONTEXT[context]:
        command = rule.match(normalized, page_count)
        if command is not None:
            return command
    return Unrecognized()


# ---------------------------------------------------------------------------
# Help text
# ---------------------------------------------------------------------------


def hint_text(context: VoiceContext) -> str:
    if context == VoiceContext.HOME:
        return 'Try "find document" or "open [name]"'
    return 'Try "pages 1 to 5" or "odd pages"'


def available_commands(context: VoiceContext) -> List[str]:
    if context == VoiceContext.HOME:
        return [
            '"Find document" - Open file picker',
            '"Open [name]" - Open recent file',
            '"Settings" - Open settings',
            '"Help" - Show commands',
        ]
    return [
        '"All pages" / "Odd" / "Even"',
        '"Pages 1 to 5" / "1 through 5"',
        '"First page" / "Last page"',
        '"Add page 3" / "Remove page 5"',
        '"Clear" / "Invert"',
        '"Extract" / "Save as [name]"',
        '"Go to page 5"',
        '"Close" / "Settings" / "Help"',
    ]
