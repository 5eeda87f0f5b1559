"""Rewriting metadata embedded in audio files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

from mutagen import File as MutagenFile
from mutagen import MutagenError

from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def open_tags(path: Union[str, Path]) -> Any:
    """
    Open an audio file for tag editing without changing it.

    Returns:
        The mutagen file object, with an empty tag block added if it had none

    Raises:
        NotFoundError: If the file does not exist
        ValidationError: If mutagen cannot read the file's format
    """
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Audio file not found: {path}")
    try:
        audio = MutagenFile(str(path), easy=True)
    except MutagenError as e:
        raise ValidationError(f"Cannot read tags from {path}: {e}") from e
    if audio is None:
        raise ValidationError(f"Unsupported audio format: {path}")
    if audio.tags is None:
        audio.add_tags()
    return audio


def save_genre(audio: Any, genre: str) -> None:
    """Store genre in a file opened with open_tags()."""
    try:
        audio["genre"] = [genre]
        audio.save()
    except MutagenError as e:
        raise ValidationError(f"Cannot write tags to {audio.filename}: {e}") from e
    logger.info(f"Wrote genre {genre!r} to {audio.filename}")


def write_genre(path: Union[str, Path], genre: str) -> None:
    """Set the genre tag of an audio file in place."""
    save_genre(open_tags(path), genre)
