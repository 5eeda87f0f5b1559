import pytest
import sqlite3

from mixcue.store import connect

MIXXX_SCHEMA = """
CREATE TABLE track_locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    location VARCHAR(512) UNIQUE,
    filename VARCHAR(512),
    directory VARCHAR(512),
    filesize INTEGER,
    fs_deleted INTEGER,
    needs_verification INTEGER
);
CREATE TABLE library (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    artist VARCHAR(64),
    title VARCHAR(64),
    album VARCHAR(64),
    genre VARCHAR(64),
    comment VARCHAR(256),
    location INTEGER,
    samplerate INTEGER DEFAULT 0,
    bitrate INTEGER,
    bpm FLOAT,
    rating INTEGER DEFAULT 0,
    mixxx_deleted INTEGER DEFAULT 0
);
CREATE TABLE Playlists (
    id INTEGER PRIMARY KEY,
    name VARCHAR(48),
    position INTEGER,
    hidden INTEGER DEFAULT 0 NOT NULL,
    date_created DATETIME,
    date_modified DATETIME,
    locked INTEGER DEFAULT 0
);
CREATE TABLE PlaylistTracks (
    id INTEGER PRIMARY KEY,
    playlist_id INTEGER REFERENCES Playlists(id),
    track_id INTEGER REFERENCES library(id),
    position INTEGER,
    pl_datetime_added TEXT
);
"""


@pytest.fixture
def db_path(tmp_path):
    """Fixture to set up a temporary Mixxx database for testing."""
    path = tmp_path / "mixxxdb.sqlite"
    conn = sqlite3.connect(path)
    conn.executescript(MIXXX_SCHEMA)
    conn.close()
    return path


@pytest.fixture
def store(db_path):
    with connect(db_path) as s:
        yield s


@pytest.fixture
def make_track(store):
    """Insert a library row and return its id."""

    def _make(artist, title, directory="/music", filename=None, **columns):
        filename = filename or f"{artist} - {title}.mp3"
        with store.conn:
            loc = store.conn.execute(
                "INSERT INTO track_locations (location, filename, directory) VALUES (?, ?, ?)",
                (f"{directory}/{filename}", filename, directory),
            ).lastrowid
            values = {"artist": artist, "title": title, "location": loc, **columns}
            names = ", ".join(values)
            marks = ", ".join("?" for _ in values)
            return store.conn.execute(
                f"INSERT INTO library ({names}) VALUES ({marks})", tuple(values.values())
            ).lastrowid

    return _make


@pytest.fixture
def make_playlist(store):
    """Insert a playlist row directly, with optional member track ids."""

    def _make(name, position=None, hidden=0, created="2024-01-01 12:00:00", tracks=()):
        with store.conn:
            if position is None:
                position = store.conn.execute(
                    "SELECT COALESCE(MAX(position), 0) + 1 FROM Playlists"
                ).fetchone()[0]
            playlist_id = store.conn.execute(
                "INSERT INTO Playlists (name, position, hidden, date_created, date_modified) "
                "VALUES (?, ?, ?, ?, ?)",
                (name, position, hidden, created, created),
            ).lastrowid
            for pos, track_id in enumerate(tracks, 1):
                store.conn.execute(
                    "INSERT INTO PlaylistTracks (playlist_id, track_id, position, pl_datetime_added) "
                    "VALUES (?, ?, ?, ?)",
                    (playlist_id, track_id, pos, created),
                )
        return playlist_id

    return _make


@pytest.fixture
def memberships(store):
    """Return [(track_id, position), ...] of a playlist in position order."""

    def _rows(playlist_id):
        return [
            tuple(row)
            for row in store.conn.execute(
                "SELECT track_id, position FROM PlaylistTracks WHERE playlist_id = ? ORDER BY position",
                (playlist_id,),
            )
        ]

    return _rows


class FakeMPDClient:
    """Stand-in for mpd.MPDClient answering currentsong() from a dict."""

    def __init__(self, song=None, fail_with=None):
        self.song = song or {}
        self.fail_with = fail_with
        self.connected_to = None
        self.closed = False

    def connect(self, host, port):
        if self.fail_with is not None:
            raise self.fail_with
        self.connected_to = (host, port)

    def currentsong(self):
        return self.song

    def close(self):
        self.closed = True

    def disconnect(self):
        self.connected_to = None


@pytest.fixture
def fake_mpd():
    return FakeMPDClient


# "fLaC" marker, then a lone STREAMINFO block (44.1 kHz, stereo, 16 bit, no frames).
FLAC_HEADER = (
    b"fLaC"
    + b"\x80\x00\x00\x22"
    + b"\x10\x00\x10\x00"
    + b"\x00\x00\x00\x00\x00\x00"
    + b"\x0a\xc4\x42\xf0\x00\x00\x00\x00"
    + b"\x00" * 16
)


@pytest.fixture
def flac_file():
    """Write a tagless, silent FLAC file at the given path and return it."""

    def _write(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(FLAC_HEADER)
        return path

    return _write
