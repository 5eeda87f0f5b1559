"""
Playlist reconciliation against a cue sheet.

Answers "which tracks of this playlist have not been played yet?" and,
given a destination playlist, "which of those are not in the destination
yet?", optionally appending the latter to the destination.

Every comparison here is by (artist, title) only. Library ids are ignored so
that a cue sheet entry, which has no id, matches any library row for the same
song, and so that two library rows for the same song count as one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .cuesheet import CueSheet
from .store import LibraryStore
from .track import LibraryTrack, Track

logger = logging.getLogger(__name__)

UNPLAYED = "UNPLAYED"
MISSING = "MISSING"
ADDED = "ADDED"


def _without(tracks: Iterable[LibraryTrack], keys) -> List[LibraryTrack]:
    return [t for t in tracks if t.key not in keys]


def unplayed(tracks: Sequence[LibraryTrack], cuesheet: CueSheet) -> List[LibraryTrack]:
    """Tracks not on the cue sheet, in their original order."""
    return _without(tracks, cuesheet.played_keys())


def missing_from(
    tracks: Sequence[LibraryTrack], dest_tracks: Iterable[Track]
) -> List[LibraryTrack]:
    """Tracks with no same-song entry in dest_tracks, in their original order."""
    return _without(tracks, {t.key for t in dest_tracks})


@dataclass
class Reconciliation:
    rows: List[Tuple[LibraryTrack, str]] = field(default_factory=list)
    total: int = 0
    unplayed: int = 0
    # Only set when tracks were copied into a destination playlist.
    added: Optional[int] = None

    @property
    def tracks(self) -> List[LibraryTrack]:
        return [track for track, _ in self.rows]


def _tagged(tracks: Iterable[LibraryTrack], tag: str) -> List[Tuple[LibraryTrack, str]]:
    return [(t, tag) for t in tracks]


def _flagged(
    tracks: Iterable[LibraryTrack], flagged: Iterable[LibraryTrack], tag: str
) -> List[Tuple[LibraryTrack, str]]:
    keys = {t.key for t in flagged}
    return [(t, tag if t.key in keys else "") for t in tracks]


def reconcile(
    store: LibraryStore,
    source_id: int,
    cuesheet: CueSheet,
    dest_id: Optional[int] = None,
    copy: bool = False,
    filter_only: bool = False,
) -> Reconciliation:
    """
    Compare a playlist with a cue sheet and optionally a destination playlist.

    Without a destination the result holds the unplayed tracks, or with
    filter_only every source track with the unplayed ones tagged. With a
    destination, the unplayed tracks absent from it ("missing") are either
    listed, flagged (filter_only) or, with copy, appended to the destination
    in one transaction.

    Args:
        store: Open library gateway
        source_id: Playlist being checked
        cuesheet: What has been played
        dest_id: Optional playlist to compare the unplayed tracks with
        copy: Append the missing tracks to dest_id
        filter_only: Show the whole working set with flags instead of narrowing it

    Returns:
        Reconciliation: Tagged rows plus source and unplayed counts

    Raises:
        ValueError: If copy is requested without a destination
        NotFoundError: If either playlist is unknown or hidden
    """
    if copy and dest_id is None:
        raise ValueError("copy requires a destination playlist")

    source = store.get_playlist_by_id(source_id)
    if dest_id is not None:
        store.get_playlist_by_id(dest_id)

    tracks = store.playlist_tracks(source_id)
    not_played = unplayed(tracks, cuesheet)
    result = Reconciliation(total=len(tracks), unplayed=len(not_played))
    logger.info(
        f"{len(not_played)} of {len(tracks)} tracks in {source.name!r} are unplayed "
        f"({len(cuesheet)} on the cue sheet)"
    )

    if dest_id is None:
        if filter_only:
            result.rows = _flagged(tracks, not_played, UNPLAYED)
        else:
            result.rows = _tagged(not_played, UNPLAYED)
        return result

    missing = missing_from(not_played, store.playlist_tracks(dest_id))
    logger.info(f"{len(missing)} unplayed tracks are missing from playlist {dest_id}")

    if copy:
        result.added = store.add_to_playlist(missing, dest_id)
        result.rows = _tagged(missing, ADDED)
    elif filter_only:
        result.rows = _flagged(not_played, missing, MISSING)
    else:
        result.rows = _tagged(missing, MISSING)
    return result
