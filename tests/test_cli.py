"""End-to-end tests of the command line through Typer's runner."""

from __future__ import annotations

from pathlib import Path

import pytest
from mutagen import File as MutagenFile
from typer.testing import CliRunner

from mixcue import cli, config as config_module
from mixcue.player import PlayerClient
from mixcue.store import LibraryStore

runner = CliRunner()


@pytest.fixture
def invoke(db_path, tmp_path, monkeypatch, fake_mpd):
    """Run the CLI against the test database with MPD playing a fixed file."""
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "no-config.json")
    playing = {"file": "House/a.mp3"}
    monkeypatch.setattr(
        cli,
        "PlayerClient",
        lambda host, port: PlayerClient(host, port, client=fake_mpd(song=playing)),
    )
    env = {
        "MIXCUE_DB_PATH": str(db_path),
        "MIXCUE_MUSIC_ROOT": "/music",
        "MPD_HOST": "localhost",
        "MPD_PORT": "6600",
    }

    def _invoke(*args):
        return runner.invoke(cli.app, list(args), env=env)

    _invoke.env = env
    _invoke.playing = playing
    return _invoke


@pytest.fixture
def library(make_track, make_playlist):
    a = make_track("Artist A", "Alpha", directory="/music/House", filename="a.mp3")
    b = make_track("Artist B", "Beta")
    c = make_track("Artist C", "Catastrophe")
    source = make_playlist("Friday", created="2024-03-01 20:00:00", tracks=[a, b, c])
    dest = make_playlist("Leftovers", created="2024-02-01 20:00:00", tracks=[b])
    return {"a": a, "b": b, "c": c, "source": source, "dest": dest}


@pytest.fixture
def cue_file(tmp_path: Path) -> Path:
    path = tmp_path / "friday.cue"
    path.write_text('TITLE "Alpha"\nPERFORMER "Artist A"\n', encoding="utf-8")
    return path


def test_playlist_list_marks_current(invoke, library) -> None:
    result = invoke("playlist", "list")
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0].startswith("*") and "Friday" in lines[0]
    assert "Leftovers" in lines[1]


def test_playlist_create(invoke, store, library) -> None:
    result = invoke("playlist", "create", "Saturday")
    assert result.exit_code == 0
    assert store.get_playlist_by_name("Saturday").position == 3


def test_playlist_show_marks_now_playing(invoke, library) -> None:
    result = invoke("playlist", "show", "Friday", "--now")
    assert result.exit_code == 0
    assert "Friday (3 tracks)" in result.stdout
    alpha = next(line for line in result.stdout.splitlines() if "Alpha" in line)
    assert alpha.startswith("NOW")


def test_playlist_show_unknown_playlist(invoke, library) -> None:
    result = invoke("playlist", "show", "Nope")
    assert result.exit_code == 1


def test_playlist_find(invoke, library) -> None:
    result = invoke("playlist", "find")
    assert result.exit_code == 0
    assert "Friday" in result.stdout
    assert "Leftovers" not in result.stdout


def test_unplayed_defaults_to_current_playlist(invoke, library, cue_file) -> None:
    result = invoke("unplayed", str(cue_file))
    assert result.exit_code == 0
    assert "Alpha" not in result.stdout
    assert "Beta" in result.stdout and "Catastrophe" in result.stdout
    assert "2 of 3 tracks in Friday unplayed" in result.stdout


def test_unplayed_against_destination(invoke, library, cue_file) -> None:
    result = invoke("unplayed", str(cue_file), "--dest", "Leftovers")
    assert result.exit_code == 0
    assert "Beta" not in result.stdout
    assert "MISSING" in result.stdout


def test_copy_unplayed(invoke, library, cue_file, memberships) -> None:
    result = invoke("copy-unplayed", str(cue_file), "--dest", "Leftovers")
    assert result.exit_code == 0
    assert "Added 1 of 2 unplayed tracks (3 in source playlist)" in result.stdout
    assert memberships(library["dest"]) == [(library["b"], 1), (library["c"], 2)]


def test_malformed_cue_aborts_before_writing(invoke, library, tmp_path, memberships) -> None:
    bad = tmp_path / "bad.cue"
    bad.write_text('TITLE "A"\nTITLE "B"\n', encoding="utf-8")
    result = invoke("copy-unplayed", str(bad), "--dest", "Leftovers")
    assert result.exit_code == 1
    assert memberships(library["dest"]) == [(library["b"], 1)]


def test_missing_cue_file(invoke, library, tmp_path) -> None:
    result = invoke("unplayed", str(tmp_path / "missing.cue"))
    assert result.exit_code == 1


def test_rating_set_and_get(invoke, store, library) -> None:
    assert invoke("rating", "set", "4").exit_code == 0
    assert store.get_track(library["a"]).rating == 4
    result = invoke("rating", "get")
    assert "Artist A - Alpha: 4" in result.stdout


def test_rating_out_of_range(invoke, store, library) -> None:
    result = invoke("rating", "set", "6")
    assert result.exit_code == 1
    assert store.get_track(library["a"]).rating == 0


def test_genre_set_without_tags(invoke, store, library) -> None:
    result = invoke("genre", "set", "Deep House", "--no-tags")
    assert result.exit_code == 0
    assert store.get_track(library["a"]).genre == "Deep House"


def test_genre_set_writes_file_tags(invoke, store, make_track, flac_file, tmp_path) -> None:
    music = tmp_path / "music"
    path = flac_file(music / "Deep" / "track.flac")
    tid = make_track(
        "Artist D", "Deep", directory=str(music / "Deep"), filename="track.flac", genre="House"
    )
    invoke.env["MIXCUE_MUSIC_ROOT"] = str(music)
    invoke.playing["file"] = "Deep/track.flac"
    result = invoke("genre", "set", "Techno")
    assert result.exit_code == 0
    assert store.get_track(tid).genre == "Techno"
    assert MutagenFile(str(path), easy=True)["genre"] == ["Techno"]


def test_genre_set_unreadable_file_leaves_library_alone(invoke, store, make_track, tmp_path) -> None:
    music = tmp_path / "music"
    (music / "House").mkdir(parents=True)
    (music / "House" / "a.mp3").write_text("not audio", encoding="utf-8")
    tid = make_track(
        "Artist A", "Alpha", directory=str(music / "House"), filename="a.mp3", genre="House"
    )
    invoke.env["MIXCUE_MUSIC_ROOT"] = str(music)
    result = invoke("genre", "set", "Techno")
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert store.get_track(tid).genre == "House"


def test_now(invoke, library) -> None:
    result = invoke("now")
    assert result.exit_code == 0
    assert "/music/House/a.mp3" in result.stdout


def test_search(invoke, library) -> None:
    result = invoke("search", "cat")
    assert result.exit_code == 0
    assert "Catastrophe" in result.stdout
    assert "Beta" not in result.stdout


def test_missing_database(invoke, tmp_path) -> None:
    result = runner.invoke(cli.app, ["--db", str(tmp_path / "none.sqlite"), "playlist", "list"])
    assert result.exit_code == 1


def test_config_show(invoke) -> None:
    result = invoke("config", "show")
    assert result.exit_code == 0
    assert "MPD_PORT=6600" in result.stdout


def test_database_that_is_not_sqlite(invoke, tmp_path) -> None:
    bogus = tmp_path / "mixxxdb.sqlite"
    bogus.write_text("not a database\n" * 100, encoding="utf-8")
    result = invoke("--db", str(bogus), "playlist", "list")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_type_errors_are_reported(invoke, library, monkeypatch) -> None:
    def bad_search(self, query):
        raise TypeError("expected a track")

    monkeypatch.setattr(LibraryStore, "find_library_tracks_matching", bad_search)
    result = invoke("search", "cat")
    assert result.exit_code == 1
    assert "expected a track" in result.output
