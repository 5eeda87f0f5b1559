"""
Track and playlist value types.

A Track is identified by its (artist, title) pair: two tracks from different
sources (a cue sheet entry, a library row, the daemon's current song) are the
same song when both strings are identical. Matching is exact and case
sensitive.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple


class Track:
    """Identity value: an artist and a title."""

    __slots__ = ("artist", "title")

    def __init__(self, artist: str, title: str):
        self.artist = artist
        self.title = title

    @property
    def key(self) -> Tuple[str, str]:
        return (self.artist, self.title)

    def __eq__(self, other):
        if not isinstance(other, Track):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(str(self))

    def __str__(self):
        return f"{self.artist} - {self.title}"

    def __repr__(self):
        return f"{type(self).__name__}({self.artist!r}, {self.title!r})"


class LibraryTrack(Track):
    """A row of the library: a Track with an id, a file location and attributes.

    Two LibraryTracks are equal only when their ids match too. Compared with a
    bare Track, only artist and title count.
    """

    __slots__ = (
        "id",
        "directory",
        "filename",
        "samplerate",
        "bitrate",
        "bpm",
        "rating",
        "genre",
        "comment",
        "position",
    )

    def __init__(
        self,
        id: int,
        artist: str,
        title: str,
        directory: str = "",
        filename: str = "",
        samplerate: Optional[int] = None,
        bitrate: Optional[int] = None,
        bpm: Optional[float] = None,
        rating: int = 0,
        genre: str = "",
        comment: str = "",
        position: Optional[int] = None,
    ):
        super().__init__(artist, title)
        self.id = id
        self.directory = directory
        self.filename = filename
        self.samplerate = samplerate
        self.bitrate = bitrate
        self.bpm = bpm
        self.rating = rating
        self.genre = genre
        self.comment = comment
        # Position within the playlist this track was loaded from, if any.
        self.position = position

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.filename)

    def __eq__(self, other):
        if isinstance(other, LibraryTrack):
            return self.id == other.id and self.key == other.key
        return super().__eq__(other)

    def __hash__(self):
        return hash(f"{self} {self.id}")

    def __repr__(self):
        return f"LibraryTrack(id={self.id!r}, artist={self.artist!r}, title={self.title!r})"


class TrackRef(NamedTuple):
    """A bare reference to a library track by id."""

    id: int


@dataclass
class Playlist:
    id: int
    name: str
    position: int = 0
    date_created: str = ""
    date_modified: str = ""

    def __str__(self):
        return self.name


def _format_bpm(bpm: Optional[float]) -> str:
    if not bpm:
        return ""
    return f"{bpm:.1f}"


def display_fields(track: LibraryTrack) -> List[Tuple[str, str]]:
    """Ordered (label, value) pairs shown for a track in listings."""
    fields = []
    if track.position is not None:
        fields.append(("pos", str(track.position)))
    fields.extend(
        [
            ("artist", track.artist or ""),
            ("title", track.title or ""),
            ("bpm", _format_bpm(track.bpm)),
            ("rating", "*" * (track.rating or 0)),
            ("genre", track.genre or ""),
        ]
    )
    return fields


def detail_fields(track: LibraryTrack) -> List[Tuple[str, str]]:
    """Every attribute of a track, for the single-track views."""
    return [
        ("id", str(track.id)),
        ("artist", track.artist or ""),
        ("title", track.title or ""),
        ("path", track.path),
        ("samplerate", str(track.samplerate or "")),
        ("bitrate", str(track.bitrate or "")),
        ("bpm", _format_bpm(track.bpm)),
        ("rating", str(track.rating or 0)),
        ("genre", track.genre or ""),
        ("comment", track.comment or ""),
    ]


def playlist_fields(playlist: Playlist) -> List[Tuple[str, str]]:
    return [
        ("id", str(playlist.id)),
        ("name", playlist.name),
        ("created", playlist.date_created or ""),
    ]
