"""
Column-aligned listings of tracks and playlists.

Rows are rendered as Rich markup strings. What is shown per item comes from an
explicit list of (label, value) pairs; per-row tags (UNPLAYED, ADDED, NOW...)
come from a Decorator and search hits are marked by a Highlighter, so this
module knows nothing about where the tags come from.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from rich.console import Console
from rich.markup import escape

from .track import LibraryTrack, Playlist, display_fields, playlist_fields

Fields = List[Tuple[str, str]]

COLUMN_GAP = "  "


class Decorator(Protocol):
    """Produces a short tag for an item, or an empty string."""

    def decorate(self, item: Any) -> str:
        ...


class Highlighter(Protocol):
    """Marks up interesting parts of an (already escaped) cell."""

    def highlight(self, text: str) -> str:
        ...


class NullDecorator:
    def decorate(self, item: Any) -> str:
        return ""


class NullHighlighter:
    def highlight(self, text: str) -> str:
        return text


class TagDecorator:
    """Looks tags up in a mapping of item -> tag."""

    def __init__(self, tags: Dict[Any, str]):
        self.tags = tags

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[Any, str]]) -> "TagDecorator":
        return cls({item: tag for item, tag in rows})

    def decorate(self, item: Any) -> str:
        return self.tags.get(item, "")


class NowPlayingDecorator:
    def __init__(self, now_playing: Optional[LibraryTrack], tag: str = "NOW"):
        self.now_playing = now_playing
        self.tag = tag

    def decorate(self, item: Any) -> str:
        if self.now_playing is not None and item == self.now_playing:
            return self.tag
        return ""


class CurrentPlaylistDecorator:
    def __init__(self, current: Optional[Playlist], tag: str = "*"):
        self.current_id = current.id if current is not None else None
        self.tag = tag

    def decorate(self, item: Playlist) -> str:
        return self.tag if item.id == self.current_id else ""


class SubstringHighlighter:
    """Wraps every case-insensitive occurrence of needle in a Rich style."""

    def __init__(self, needle: str, style: str = "bold yellow"):
        self.style = style
        self.pattern = re.compile(re.escape(escape(needle)), re.IGNORECASE) if needle else None

    def highlight(self, text: str) -> str:
        if self.pattern is None:
            return text
        return self.pattern.sub(lambda m: f"[{self.style}]{m.group(0)}[/{self.style}]", text)


def format_rows(
    items: Sequence[Any],
    fields: Callable[[Any], Fields],
    decorator: Optional[Decorator] = None,
    highlighter: Optional[Highlighter] = None,
    header: bool = False,
) -> List[str]:
    """
    Render one line per item with every column padded to its widest value.

    Widths are measured on the raw values before markup is added, so
    highlighting never shifts the columns.
    """
    decorator = decorator or NullDecorator()
    highlighter = highlighter or NullHighlighter()

    tags = [decorator.decorate(item) for item in items]
    table = [fields(item) for item in items]
    if not table:
        return []

    labels = [label for label, _ in max(table, key=len)]
    widths = [0] * len(labels)
    for row in table:
        for i, (_, value) in enumerate(row):
            widths[i] = max(widths[i], len(value))
    if header:
        widths = [max(w, len(label)) for w, label in zip(widths, labels)]
    tag_width = max(len(tag) for tag in tags)

    def render(cells: List[str], tag: str, mark: bool) -> str:
        parts = []
        if tag_width:
            parts.append(escape(tag) + " " * (tag_width - len(tag)))
        for i, width in enumerate(widths):
            value = cells[i] if i < len(cells) else ""
            text = escape(value)
            if mark:
                text = highlighter.highlight(text)
            parts.append(text + " " * (width - len(value)))
        return COLUMN_GAP.join(parts).rstrip()

    lines = []
    if header:
        lines.append(render(labels, "", mark=False))
    for row, tag in zip(table, tags):
        lines.append(render([value for _, value in row], tag, mark=True))
    return lines


def format_tracks(
    tracks: Sequence[LibraryTrack],
    decorator: Optional[Decorator] = None,
    highlighter: Optional[Highlighter] = None,
    header: bool = False,
) -> List[str]:
    return format_rows(tracks, display_fields, decorator, highlighter, header)


def format_playlists(
    playlists: Sequence[Playlist],
    decorator: Optional[Decorator] = None,
    header: bool = False,
) -> List[str]:
    return format_rows(playlists, playlist_fields, decorator, None, header)


def format_fields(fields: Fields) -> List[str]:
    """label: value lines with the labels padded to the same width."""
    width = max((len(label) for label, _ in fields), default=0)
    return [f"{escape(label).ljust(width)}  {escape(value)}" for label, value in fields]


def format_report(added: int, unplayed: int, total: int) -> str:
    return f"Added {added} of {unplayed} unplayed tracks ({total} in source playlist)"


def print_lines(lines: Iterable[str], console: Console) -> None:
    for line in lines:
        console.print(line, highlight=False, soft_wrap=True)
