"""
Client for the MPD playback daemon.

Only one question is ever asked: which file is playing right now. MPD reports
paths relative to its music directory, so the answer is joined with the
configured MUSIC_ROOT before looking the track up in the library.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from mpd import ConnectionError as MPDConnectionError
from mpd import MPDClient

from .errors import NotFoundError, PlayerConnectionError
from .store import LibraryStore
from .track import LibraryTrack

logger = logging.getLogger(__name__)


class PlayerClient:
    """A single connection to MPD, made once and never retried."""

    def __init__(self, host: str, port: int, client: Optional[MPDClient] = None):
        self.host = host
        self.port = port
        self.client = client if client is not None else MPDClient()
        self.connected = False

    def connect(self) -> "PlayerClient":
        try:
            self.client.connect(self.host, self.port)
        except (OSError, MPDConnectionError) as e:
            raise PlayerConnectionError(
                f"Cannot connect to MPD at {self.host}:{self.port}: {e}"
            ) from e
        self.connected = True
        logger.debug(f"Connected to MPD at {self.host}:{self.port}")
        return self

    def current_file(self) -> str:
        """Path of the current song, relative to MPD's music directory."""
        song = self.client.currentsong()
        if not song or not song.get("file"):
            raise NotFoundError("MPD is not playing anything")
        return song["file"]

    def close(self) -> None:
        if not self.connected:
            return
        self.connected = False
        try:
            self.client.close()
            self.client.disconnect()
        except MPDConnectionError:
            logger.debug("MPD connection was already closed")


def now_playing_path(player: PlayerClient, music_root: Union[str, Path]) -> str:
    return os.path.join(str(music_root), player.current_file())


def resolve_now_playing(
    store: LibraryStore, player: PlayerClient, music_root: Union[str, Path]
) -> LibraryTrack:
    """The library track MPD is currently playing."""
    return store.find_track_by_path(now_playing_path(player, music_root))
