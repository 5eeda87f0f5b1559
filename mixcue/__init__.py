"""
mixcue: manage a Mixxx library from the command line.

This package provides:
- Lookup, listing and creation of Mixxx playlists.
- Reconciliation of a playlist against the cue sheet of a recorded set:
  which tracks were not played, and copying those into another playlist.
- Rating and genre editing of the track MPD is currently playing.
- Case-insensitive search over the whole library.
"""

__version__ = "1.0.0"
