import subprocess
import threading
from unittest import mock

import pytest

from drillrunner.exercise import Exercise, Mode
from drillrunner.watch import HintHolder, WatchStatus, handle_command, watch


def test_hint_holder_round_trip():
    holder = HintHolder()
    assert holder.get() is None
    holder.set("look at the types")
    assert holder.get() == "look at the types"
    holder.set(None)
    assert holder.get() is None


def test_hint_holder_initial_value():
    assert HintHolder("first").get() == "first"


def test_hint_command_prints_hint(capsys):
    handle_command("hint\n", HintHolder("use a loop"), threading.Event())
    assert capsys.readouterr().out == "use a loop\n"


def test_hint_command_without_hint_prints_nothing(capsys):
    handle_command("hint", HintHolder(), threading.Event())
    assert capsys.readouterr().out == ""


def test_quit_sets_event(capsys):
    event = threading.Event()
    handle_command("  quit  ", HintHolder(), event)
    assert event.is_set()
    assert capsys.readouterr().out == "Bye!\n"


def test_clear_prints_escape(capsys):
    handle_command("clear", HintHolder(), threading.Event())
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_help_lists_commands(capsys):
    event = threading.Event()
    handle_command("help", HintHolder(), event)
    out = capsys.readouterr().out
    assert out.startswith("Commands available to you in watch mode:")
    assert "quit   - quits watch mode" in out
    assert not event.is_set()


def test_bang_without_command(capsys):
    handle_command("!", HintHolder(), threading.Event())
    assert capsys.readouterr().out == "no command provided\n"


def test_bang_with_missing_program(capsys):
    handle_command("!no-such-program-here --flag", HintHolder(), threading.Event())
    out = capsys.readouterr().out
    assert out.startswith("failed to execute command `no-such-program-here --flag`:")


def _fake_run(cmd, **kwargs):
    return subprocess.CompletedProcess(cmd, 0, b"", b"")


def test_bang_runs_command(capsys):
    event = threading.Event()
    with mock.patch("subprocess.run", side_effect=_fake_run) as fake:
        handle_command("!git status", HintHolder(), event)
    assert fake.call_count == 1
    assert fake.call_args.args[0] == ["git", "status"]
    assert capsys.readouterr().out == ""
    assert not event.is_set()


def test_unknown_command(capsys):
    handle_command("dance", HintHolder(), threading.Event())
    assert capsys.readouterr().out == "unknown command: dance\n"


def test_watch_finishes_when_all_done(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "exercises").mkdir()
    source = tmp_path / "exercises" / "done.rs"
    source.write_text("fn main() {}\n", encoding="utf-8")
    exercises = [Exercise("done", source, Mode.COMPILE, "no hint")]
    with mock.patch("subprocess.run", side_effect=_fake_run):
        assert watch(exercises, False, False) is WatchStatus.FINISHED


def test_watch_needs_exercises_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(OSError):
        watch([], False, False)