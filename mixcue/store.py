"""
Access to the Mixxx library database.

The schema belongs to Mixxx and is never created or migrated here. Tracks live
in `library` with their file location in `track_locations`; playlists live in
`Playlists` and their ordered membership in `PlaylistTracks`. Playlists with a
non-zero `hidden` flag (Auto DJ queue, set logs) are invisible to every lookup
and listing.

All statements are parameterized. The only multi-statement write,
add_to_playlist, runs inside a single transaction.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Iterable, List, Optional, Union

from .errors import NotFoundError, StoreConnectionError, ValidationError
from .track import LibraryTrack, Playlist, TrackRef

logger = logging.getLogger(__name__)

MIN_RATING = 0
MAX_RATING = 5

TRACK_COLUMNS = """
    library.id AS id,
    library.artist AS artist,
    library.title AS title,
    track_locations.directory AS directory,
    track_locations.filename AS filename,
    library.samplerate AS samplerate,
    library.bitrate AS bitrate,
    library.bpm AS bpm,
    library.rating AS rating,
    library.genre AS genre,
    library.comment AS comment
"""

TRACK_SELECT = f"""
    SELECT {TRACK_COLUMNS}
    FROM library
    JOIN track_locations ON library.location = track_locations.id
"""

PLAYLIST_SELECT = """
    SELECT Playlists.id, Playlists.name, Playlists.position,
           Playlists.date_created, Playlists.date_modified
    FROM Playlists
"""

TrackInput = Union[LibraryTrack, TrackRef, int]


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _like_escape(text: str) -> str:
    """Escape LIKE wildcards so they match literally (used with ESCAPE '\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_track(row: sqlite3.Row, position: Optional[int] = None) -> LibraryTrack:
    return LibraryTrack(
        id=row["id"],
        artist=row["artist"] or "",
        title=row["title"] or "",
        directory=row["directory"] or "",
        filename=row["filename"] or "",
        samplerate=row["samplerate"],
        bitrate=row["bitrate"],
        bpm=row["bpm"],
        rating=row["rating"] or 0,
        genre=row["genre"] or "",
        comment=row["comment"] or "",
        position=position,
    )


def _row_to_playlist(row: sqlite3.Row) -> Playlist:
    return Playlist(
        id=row["id"],
        name=row["name"],
        position=row["position"] or 0,
        date_created=row["date_created"] or "",
        date_modified=row["date_modified"] or "",
    )


def resolve_track_id(track: TrackInput) -> int:
    """Reduce a LibraryTrack, TrackRef or bare int to a track id."""
    if isinstance(track, LibraryTrack):
        return track.id
    if isinstance(track, TrackRef):
        return track.id
    if isinstance(track, int) and not isinstance(track, bool):
        return track
    raise TypeError(
        f"Expected a LibraryTrack, TrackRef or track id, got {type(track).__name__}"
    )


class LibraryStore:
    """Queries and commands against an open Mixxx database connection."""

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # Playlists

    def get_playlist_by_name(self, name: str) -> Playlist:
        row = self.conn.execute(
            PLAYLIST_SELECT + " WHERE hidden = 0 AND name = ?", (name,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No playlist named {name!r}")
        return _row_to_playlist(row)

    def get_playlist_by_id(self, playlist_id: int) -> Playlist:
        row = self.conn.execute(
            PLAYLIST_SELECT + " WHERE hidden = 0 AND id = ?", (playlist_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No playlist with id {playlist_id}")
        return _row_to_playlist(row)

    def list_playlists(self) -> List[Playlist]:
        rows = self.conn.execute(
            PLAYLIST_SELECT + " WHERE hidden = 0 ORDER BY position, id"
        ).fetchall()
        return [_row_to_playlist(row) for row in rows]

    def create_playlist(self, name: str) -> Playlist:
        if not name or not name.strip():
            raise ValidationError("Playlist name must not be empty")
        existing = self.conn.execute(
            "SELECT 1 FROM Playlists WHERE hidden = 0 AND name = ?", (name,)
        ).fetchone()
        if existing is not None:
            raise ValidationError(f"Playlist {name!r} already exists")

        now = _now()
        with self.conn:
            cur = self.conn.execute(
                """
                INSERT INTO Playlists (name, position, hidden, date_created, date_modified)
                VALUES (?, (SELECT COALESCE(MAX(position), 0) + 1 FROM Playlists), 0, ?, ?)
                """,
                (name, now, now),
            )
        logger.info(f"Created playlist {name!r} (id {cur.lastrowid})")
        return self.get_playlist_by_id(cur.lastrowid)

    def _nth_newest_playlist(self, n: int) -> Optional[Playlist]:
        row = self.conn.execute(
            PLAYLIST_SELECT
            + " WHERE hidden = 0 ORDER BY date_created DESC, id DESC LIMIT 1 OFFSET ?",
            (n,),
        ).fetchone()
        return _row_to_playlist(row) if row is not None else None

    def get_current_playlist(self) -> Playlist:
        """The most recently created playlist."""
        playlist = self._nth_newest_playlist(0)
        if playlist is None:
            raise NotFoundError("There are no playlists")
        return playlist

    def get_previous_playlist(self) -> Playlist:
        """The playlist created just before the current one."""
        playlist = self._nth_newest_playlist(1)
        if playlist is None:
            raise NotFoundError("There is no previous playlist")
        return playlist

    def find_playlists_containing_track(self, track_id: int) -> List[Playlist]:
        rows = self.conn.execute(
            """
            SELECT DISTINCT Playlists.id, Playlists.name, Playlists.position,
                   Playlists.date_created, Playlists.date_modified
            FROM Playlists
            JOIN PlaylistTracks ON PlaylistTracks.playlist_id = Playlists.id
            WHERE Playlists.hidden = 0 AND PlaylistTracks.track_id = ?
            ORDER BY Playlists.position, Playlists.id
            """,
            (track_id,),
        ).fetchall()
        return [_row_to_playlist(row) for row in rows]

    # Membership

    def playlist_tracks(self, playlist_id: int) -> List[LibraryTrack]:
        rows = self.conn.execute(
            f"""
            SELECT PlaylistTracks.position AS pl_position, {TRACK_COLUMNS}
            FROM PlaylistTracks
            JOIN library ON PlaylistTracks.track_id = library.id
            JOIN track_locations ON library.location = track_locations.id
            WHERE PlaylistTracks.playlist_id = ?
            ORDER BY PlaylistTracks.position
            """,
            (playlist_id,),
        ).fetchall()
        return [_row_to_track(row, position=row["pl_position"]) for row in rows]

    def _max_position(self, playlist_id: int) -> int:
        row = self.conn.execute(
            "SELECT COALESCE(MAX(position), 0) FROM PlaylistTracks WHERE playlist_id = ?",
            (playlist_id,),
        ).fetchone()
        return row[0]

    def _insert_member(
        self, playlist_id: int, track_id: int, position: int, added_at: str
    ) -> None:
        exists = self.conn.execute(
            "SELECT 1 FROM library WHERE id = ?", (track_id,)
        ).fetchone()
        if exists is None:
            raise NotFoundError(f"No track with id {track_id}")
        self.conn.execute(
            """
            INSERT INTO PlaylistTracks (playlist_id, track_id, position, pl_datetime_added)
            VALUES (?, ?, ?, ?)
            """,
            (playlist_id, track_id, position, added_at),
        )

    def add_to_playlist(self, tracks: Iterable[TrackInput], playlist_id: int) -> int:
        """Append tracks to a playlist, all or nothing.

        Positions continue after the playlist's current maximum in input
        order. Returns the number of rows inserted.
        """
        track_ids = [resolve_track_id(t) for t in tracks]
        if not track_ids:
            return 0
        # Raises NotFoundError for hidden or unknown playlists before writing.
        self.get_playlist_by_id(playlist_id)

        with self.conn:
            position = self._max_position(playlist_id)
            for track_id in track_ids:
                position += 1
                self._insert_member(playlist_id, track_id, position, _now())
            self.conn.execute(
                "UPDATE Playlists SET date_modified = ? WHERE id = ?",
                (_now(), playlist_id),
            )
        logger.info(f"Added {len(track_ids)} tracks to playlist {playlist_id}")
        return len(track_ids)

    # Tracks

    def get_track(self, track_id: int) -> LibraryTrack:
        row = self.conn.execute(
            TRACK_SELECT + " WHERE library.id = ?", (track_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No track with id {track_id}")
        return _row_to_track(row)

    def find_track_by_path(self, path: Union[str, Path]) -> LibraryTrack:
        directory, filename = os.path.split(str(path))
        row = self.conn.execute(
            TRACK_SELECT
            + " WHERE track_locations.directory = ? AND track_locations.filename = ?",
            (directory, filename),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No track in the library at {path}")
        return _row_to_track(row)

    def find_library_tracks_matching(self, query: str) -> List[LibraryTrack]:
        """Case-insensitive substring search over artist and title."""
        pattern = f"%{_like_escape(query)}%"
        rows = self.conn.execute(
            TRACK_SELECT
            + """
            WHERE library.mixxx_deleted = 0
              AND (library.artist LIKE ? ESCAPE '\\' OR library.title LIKE ? ESCAPE '\\')
            ORDER BY library.artist, library.title
            """,
            (pattern, pattern),
        ).fetchall()
        return [_row_to_track(row) for row in rows]

    def set_rating(self, track_id: int, rating: int) -> None:
        if (
            not isinstance(rating, int)
            or isinstance(rating, bool)
            or not MIN_RATING <= rating <= MAX_RATING
        ):
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating!r}"
            )
        self._update_track(track_id, "rating", rating)

    def set_genre(self, track_id: int, genre: str) -> None:
        self._update_track(track_id, "genre", genre)

    def _update_track(self, track_id: int, column: str, value) -> None:
        # column is one of the fixed names passed by set_rating/set_genre
        with self.conn:
            cur = self.conn.execute(
                f"UPDATE library SET {column} = ? WHERE id = ?", (value, track_id)
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"No track with id {track_id}")
        logger.info(f"Set {column} of track {track_id} to {value!r}")

    def close(self) -> None:
        self.conn.close()


@contextmanager
def connect(db_path: Union[str, Path]) -> Generator[LibraryStore, None, None]:
    """
    Context manager opening the library database.

    Args:
        db_path: Path to an existing Mixxx database file

    Yields:
        LibraryStore: Gateway over the open connection, closed on exit

    Raises:
        StoreConnectionError: If the file is missing, is not a database, or a
            query fails (locked database, damaged file)
    """
    path = Path(db_path).expanduser()
    if not path.is_file():
        raise StoreConnectionError(f"Library database not found: {path}")

    try:
        conn = sqlite3.connect(str(path))
    except sqlite3.Error as e:
        raise StoreConnectionError(f"Cannot open library database {path}: {e}") from e

    store = LibraryStore(conn)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("SELECT 1 FROM sqlite_master LIMIT 1")
        yield store
    except sqlite3.Error as e:
        logger.error(f"Database error on {path}: {e}")
        raise StoreConnectionError(f"Library database {path} failed: {e}") from e
    finally:
        store.close()
