"""
Per-invocation ownership of the store and player connections.

A CommandContext is built once per command, handed to whatever needs the
database or MPD, and torn down on every exit path by command_context().
"""
from __future__ import annotations

import logging
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Dict, Generator, Optional

from .player import PlayerClient, resolve_now_playing
from .store import LibraryStore, connect
from .track import LibraryTrack

logger = logging.getLogger(__name__)


class CommandContext:
    def __init__(
        self,
        config: Dict[str, Any],
        store: LibraryStore,
        player_factory: Optional[Callable[[str, int], PlayerClient]] = None,
    ):
        self.config = config
        self.store = store
        self._player_factory = player_factory or PlayerClient
        self._player: Optional[PlayerClient] = None

    @property
    def player(self) -> PlayerClient:
        """The MPD connection, opened on first use."""
        if self._player is None:
            player = self._player_factory(self.config["MPD_HOST"], self.config["MPD_PORT"])
            player.connect()
            self._player = player
        return self._player

    def now_playing(self) -> LibraryTrack:
        return resolve_now_playing(self.store, self.player, self.config["MUSIC_ROOT"])

    def close(self) -> None:
        if self._player is not None:
            self._player.close()
            self._player = None


@contextmanager
def command_context(
    config: Dict[str, Any],
    player_factory: Optional[Callable[[str, int], PlayerClient]] = None,
) -> Generator[CommandContext, None, None]:
    with ExitStack() as stack:
        store = stack.enter_context(connect(config["DB_PATH"]))
        ctx = CommandContext(config, store, player_factory=player_factory)
        stack.callback(ctx.close)
        logger.debug(f"Opened library {config['DB_PATH']}")
        yield ctx
