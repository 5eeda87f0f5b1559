"""
Cue sheet parsing.

Only TITLE and PERFORMER directives matter here. Each TITLE is held until the
PERFORMER that follows it, which emits a Track(performer, title). Every other
line (FILE, TRACK, INDEX, REM, ...) is ignored.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple, Union

from .errors import CueParseError
from .track import Track

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"^\s*TITLE\s+(.*?)\s*$")
PERFORMER_RE = re.compile(r"^\s*PERFORMER\s+(.*?)\s*$")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


class CueSheet:
    """The ordered tracks of a cue sheet."""

    def __init__(self, tracks: List[Track], source: str = "<lines>"):
        self.tracks = tracks
        self.source = source

    @classmethod
    def parse(cls, path: Union[str, Path]) -> "CueSheet":
        path = Path(path)
        with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
            return cls.from_lines(f, source=str(path))

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: str = "<lines>") -> "CueSheet":
        tracks: List[Track] = []
        pending_title: Optional[str] = None

        for lineno, line in enumerate(lines, 1):
            m = TITLE_RE.match(line)
            if m:
                if pending_title is not None:
                    raise CueParseError(
                        source,
                        lineno,
                        f"TITLE without PERFORMER after TITLE {pending_title!r}",
                    )
                pending_title = _unquote(m.group(1))
                continue

            m = PERFORMER_RE.match(line)
            if m:
                performer = _unquote(m.group(1))
                if pending_title is None:
                    # Sheet-level PERFORMER header, not a played track.
                    logger.debug(f"{source}:{lineno}: PERFORMER with no TITLE skipped")
                    continue
                tracks.append(Track(performer, pending_title))
                pending_title = None

        if pending_title is not None:
            logger.debug(f"{source}: trailing TITLE {pending_title!r} dropped")

        logger.debug(f"Parsed {len(tracks)} tracks from {source}")
        return cls(tracks, source=source)

    def size(self) -> int:
        return len(self.tracks)

    def __len__(self):
        return len(self.tracks)

    def __iter__(self):
        return iter(self.tracks)

    def contains(self, track: Track) -> bool:
        if not isinstance(track, Track):
            raise TypeError(
                f"CueSheet.contains() expects a Track, got {type(track).__name__}"
            )
        return any(entry == track for entry in self.tracks)

    __contains__ = contains

    def played_keys(self) -> Set[Tuple[str, str]]:
        """(artist, title) of every track on the sheet."""
        return {entry.key for entry in self.tracks}
