"""
Exception types raised by mixcue.

Nothing in the library recovers from these locally; they surface to the
command layer, which prints the message and exits non-zero.
"""


class MixcueError(Exception):
    """Base class for every fatal condition reported by mixcue."""


class NotFoundError(MixcueError, LookupError):
    """A requested playlist, track or row does not exist."""


class ValidationError(MixcueError, ValueError):
    """Out-of-range or otherwise unacceptable input, raised before any write."""


class CueParseError(MixcueError, ValueError):
    """A cue sheet is malformed (a TITLE followed by another TITLE)."""

    def __init__(self, source: str, lineno: int, message: str):
        self.source = source
        self.lineno = lineno
        super().__init__(f"{source}:{lineno}: {message}")


class StoreConnectionError(MixcueError, ConnectionError):
    """The library database cannot be opened."""


class PlayerConnectionError(MixcueError, ConnectionError):
    """The playback daemon cannot be reached."""
