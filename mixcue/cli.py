import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import IntPrompt, Prompt

from .config import load_config, save_config
from .context import command_context
from .cuesheet import CueSheet
from .display import (
    CurrentPlaylistDecorator,
    NowPlayingDecorator,
    SubstringHighlighter,
    TagDecorator,
    format_fields,
    format_playlists,
    format_report,
    format_tracks,
    print_lines,
)
from .errors import MixcueError, NotFoundError
from .player import PlayerClient
from .reconcile import reconcile
from .store import LibraryStore
from .tags import open_tags, save_genre
from .track import Playlist, detail_fields

logger = logging.getLogger(__name__)

app = typer.Typer(help="Mixxx playlists, MPD and cue sheets.", no_args_is_help=True)

# Sub-apps
playlist_app = typer.Typer(help="List, create, show and find playlists")
rating_app = typer.Typer(help="Rating of the track MPD is playing")
genre_app = typer.Typer(help="Genre of the track MPD is playing")
config_app = typer.Typer(help="Edit or show configuration")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
    db: Optional[Path] = typer.Option(
        None, "--db", help="Mixxx database to use instead of the configured DB_PATH"
    ),
):
    """Manage the Mixxx library from the command line."""
    config = load_config()
    if db is not None:
        config["DB_PATH"] = db.expanduser()
    level = logging.DEBUG if verbose else getattr(logging, config["LOG_LEVEL"], logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    ctx.obj = config


@contextmanager
def _fatal_errors():
    """Report any mixcue error or misuse of a track value and exit with status 1."""
    try:
        yield
    except (MixcueError, TypeError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@contextmanager
def _open(ctx: typer.Context):
    with _fatal_errors():
        with command_context(ctx.obj, player_factory=PlayerClient) as cctx:
            yield cctx


def _pick_playlist(
    store: LibraryStore,
    name: Optional[str] = None,
    playlist_id: Optional[int] = None,
    previous: bool = False,
) -> Playlist:
    if name is not None:
        return store.get_playlist_by_name(name)
    if playlist_id is not None:
        return store.get_playlist_by_id(playlist_id)
    if previous:
        return store.get_previous_playlist()
    return store.get_current_playlist()


def _load_cuesheet(path: Path) -> CueSheet:
    if not path.is_file():
        raise NotFoundError(f"Cue sheet not found: {path}")
    return CueSheet.parse(path)


################################################################################
# PLAYLISTS
################################################################################


@playlist_app.command(name="list")
def playlist_list(ctx: typer.Context):
    """List playlists in order; the current one is marked with '*'."""
    with _open(ctx) as cctx:
        playlists = cctx.store.list_playlists()
        if not playlists:
            console.print("[yellow]No playlists.[/yellow]")
            return
        current = cctx.store.get_current_playlist()
        print_lines(format_playlists(playlists, CurrentPlaylistDecorator(current)), console)


@playlist_app.command(name="create")
def playlist_create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the new playlist"),
):
    """Create an empty playlist after the existing ones."""
    with _open(ctx) as cctx:
        playlist = cctx.store.create_playlist(name)
        console.print(
            f"[bold green]✓ Created playlist[/bold green] {escape(playlist.name)} (id {playlist.id})"
        )


@playlist_app.command(name="show")
def playlist_show(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Playlist name (default: current playlist)"),
    playlist_id: Optional[int] = typer.Option(None, "--id", help="Select the playlist by id"),
    previous: bool = typer.Option(False, "--previous", help="Show the previous playlist"),
    now: bool = typer.Option(False, "--now", help="Mark the track MPD is playing"),
):
    """Show the tracks of a playlist."""
    with _open(ctx) as cctx:
        playlist = _pick_playlist(cctx.store, name, playlist_id, previous)
        tracks = cctx.store.playlist_tracks(playlist.id)
        decorator = NowPlayingDecorator(cctx.now_playing()) if now else None
        console.print(f"[bold]{escape(playlist.name)}[/bold] ({len(tracks)} tracks)")
        print_lines(format_tracks(tracks, decorator), console)


@playlist_app.command(name="find")
def playlist_find(ctx: typer.Context):
    """List the playlists that contain the track MPD is playing."""
    with _open(ctx) as cctx:
        track = cctx.now_playing()
        playlists = cctx.store.find_playlists_containing_track(track.id)
        console.print(f"[bold]{escape(str(track))}[/bold]")
        if not playlists:
            console.print("[yellow]Not in any playlist.[/yellow]")
            return
        print_lines(format_playlists(playlists), console)


################################################################################
# RECONCILIATION
################################################################################


@app.command(name="unplayed")
def unplayed_cmd(
    ctx: typer.Context,
    cue: Path = typer.Argument(..., help="Cue sheet recorded during the set"),
    playlist: Optional[str] = typer.Option(
        None, "--playlist", "-p", help="Source playlist (default: current playlist)"
    ),
    dest: Optional[str] = typer.Option(
        None, "--dest", "-d", help="Only show unplayed tracks missing from this playlist"
    ),
    filter_only: bool = typer.Option(
        False, "--filter", "-f", help="Show every track and flag the matching ones"
    ),
):
    """List the tracks of a playlist that the cue sheet says were not played."""
    with _fatal_errors():
        cuesheet = _load_cuesheet(cue)
    with _open(ctx) as cctx:
        source = _pick_playlist(cctx.store, playlist)
        dest_id = cctx.store.get_playlist_by_name(dest).id if dest else None
        result = reconcile(cctx.store, source.id, cuesheet, dest_id=dest_id, filter_only=filter_only)
        print_lines(format_tracks(result.tracks, TagDecorator.from_rows(result.rows)), console)
        console.print(
            f"[cyan]{result.unplayed} of {result.total} tracks in {escape(source.name)} unplayed[/cyan]"
        )


@app.command(name="copy-unplayed")
def copy_unplayed_cmd(
    ctx: typer.Context,
    cue: Path = typer.Argument(..., help="Cue sheet recorded during the set"),
    dest: str = typer.Option(..., "--dest", "-d", help="Playlist to append unplayed tracks to"),
    playlist: Optional[str] = typer.Option(
        None, "--playlist", "-p", help="Source playlist (default: current playlist)"
    ),
):
    """Append the unplayed tracks of a playlist to another playlist."""
    with _fatal_errors():
        cuesheet = _load_cuesheet(cue)
    with _open(ctx) as cctx:
        source = _pick_playlist(cctx.store, playlist)
        destination = cctx.store.get_playlist_by_name(dest)
        result = reconcile(cctx.store, source.id, cuesheet, dest_id=destination.id, copy=True)
        print_lines(format_tracks(result.tracks, TagDecorator.from_rows(result.rows)), console)
        console.print(
            f"[bold green]✓ {format_report(result.added, result.unplayed, result.total)}[/bold green]"
        )


################################################################################
# NOW PLAYING
################################################################################


@app.command(name="now")
def now_cmd(ctx: typer.Context):
    """Show the library entry of the track MPD is playing."""
    with _open(ctx) as cctx:
        print_lines(format_fields(detail_fields(cctx.now_playing())), console)


@rating_app.command(name="get")
def rating_get(ctx: typer.Context):
    with _open(ctx) as cctx:
        track = cctx.now_playing()
        console.print(f"{escape(str(track))}: {track.rating}")


@rating_app.command(name="set")
def rating_set(
    ctx: typer.Context,
    rating: int = typer.Argument(..., help="Rating from 0 to 5"),
):
    with _open(ctx) as cctx:
        track = cctx.now_playing()
        cctx.store.set_rating(track.id, rating)
        console.print(f"[bold green]✓[/bold green] {escape(str(track))}: {rating}")


@genre_app.command(name="get")
def genre_get(ctx: typer.Context):
    with _open(ctx) as cctx:
        track = cctx.now_playing()
        console.print(f"{escape(str(track))}: {escape(track.genre)}")


@genre_app.command(name="set")
def genre_set(
    ctx: typer.Context,
    genre: str = typer.Argument(..., help="New genre"),
    no_tags: bool = typer.Option(
        False, "--no-tags", help="Only update the library, leave the file's tags alone"
    ),
):
    """Set the genre in the library and in the file's embedded tags."""
    with _open(ctx) as cctx:
        track = cctx.now_playing()
        audio = None if no_tags else open_tags(track.path)
        cctx.store.set_genre(track.id, genre)
        if audio is not None:
            save_genre(audio, genre)
        console.print(f"[bold green]✓[/bold green] {escape(str(track))}: {escape(genre)}")


################################################################################
# SEARCH
################################################################################


@app.command(name="search")
def search_cmd(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for in artists and titles"),
):
    """Search the whole library by artist or title (case-insensitive)."""
    with _open(ctx) as cctx:
        tracks = cctx.store.find_library_tracks_matching(query)
        if not tracks:
            console.print(f"[yellow]No tracks match {escape(query)!r}.[/yellow]")
            return
        print_lines(format_tracks(tracks, highlighter=SubstringHighlighter(query)), console)


################################################################################
# CONFIG
################################################################################


@config_app.command(name="show")
def config_show(ctx: typer.Context):
    """Show current configuration values."""
    for k, v in ctx.obj.items():
        console.print(f"[cyan]{k}[/cyan]=[white]{escape(str(v))}[/white]")


@config_app.command(name="edit")
def config_edit(ctx: typer.Context):
    """Prompt for each setting and save the configuration file."""
    current = ctx.obj
    new_config = {
        "DB_PATH": Prompt.ask("[bold]Mixxx database[/bold]", default=str(current["DB_PATH"])),
        "MUSIC_ROOT": Prompt.ask(
            "[bold]MPD music directory[/bold]", default=str(current["MUSIC_ROOT"])
        ),
        "MPD_HOST": Prompt.ask("[bold]MPD host[/bold]", default=current["MPD_HOST"]),
        "MPD_PORT": IntPrompt.ask("[bold]MPD port[/bold]", default=current["MPD_PORT"]),
        "LOG_LEVEL": current["LOG_LEVEL"],
    }
    path = save_config(new_config)
    console.print(f"\n[bold green]✓ Configuration saved to {path}[/bold green]")


# Mount sub-apps
app.add_typer(playlist_app, name="playlist")
app.add_typer(rating_app, name="rating")
app.add_typer(genre_app, name="genre")
app.add_typer(config_app, name="config")


if __name__ == "__main__":
    app()
