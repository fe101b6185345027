import subprocess
from unittest import mock

import pytest

from drillrunner.exercise import BUILD_SCRIPT_CARGO_TOML_PATH, Exercise, Mode, temp_file_path
from drillrunner.run import reset, run
from drillrunner.verify import ExerciseFailed

FINISHED_SOURCE = "// fake_exercise\n\nfn main() {\n\n}\n"
PENDING_SOURCE = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(self, compile_ok=True, run_ok=True, stdout="", stderr=""):
        self.compile_ok = compile_ok
        self.run_ok = run_ok
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            code = 0 if self.compile_ok else 1
            return subprocess.CompletedProcess(args, code, b"", b"error: expected pattern")
        code = 0 if self.run_ok else 101
        return subprocess.CompletedProcess(
            args, code, self.stdout.encode(), self.stderr.encode()
        )


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_EMOJI", raising=False)
    return tmp_path


def install(monkeypatch, fake):
    monkeypatch.setattr("drillrunner.exercise.subprocess.run", fake)
    return fake


def make_exercise(directory, name, source, mode=Mode.COMPILE):
    path = directory / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint="Hello!")


def test_run_compile_success(workdir, monkeypatch, capsys):
    fake = install(monkeypatch, FakeToolchain(stdout="Hello World!"))
    exercise = make_exercise(workdir, "compSuccess", FINISHED_SOURCE)
    assert run(exercise, False) is None
    out = capsys.readouterr().out
    assert "Hello World!" in out
    assert f"Successfully ran {exercise}" in out
    assert [call[0] for call in fake.calls] == ["rustc", temp_file_path()]


def test_run_compile_failure(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(compile_ok=False))
    exercise = make_exercise(workdir, "compFailure", FINISHED_SOURCE)
    with pytest.raises(ExerciseFailed) as info:
        run(exercise, False)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Compilation of {exercise} failed!" in out
    assert "expected pattern" in out


def test_run_with_errors(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(run_ok=False, stdout="partial", stderr="panicked"))
    exercise = make_exercise(workdir, "crash", FINISHED_SOURCE)
    with pytest.raises(ExerciseFailed):
        run(exercise, False)
    out = capsys.readouterr().out
    assert "partial" in out
    assert "panicked" in out
    assert f"Ran {exercise} with errors" in out


def test_run_compile_exercise_does_not_prompt(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain())
    exercise = make_exercise(workdir, "pending_exercise", PENDING_SOURCE)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain())
    exercise = make_exercise(workdir, "pending_test_exercise", PENDING_SOURCE, mode=Mode.TEST)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_success_with_output(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout="THIS TEST TOO SHALL PASS"))
    exercise = make_exercise(workdir, "testSuccess", FINISHED_SOURCE, mode=Mode.TEST)
    run(exercise, True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_test_success_without_output(workdir, monkeypatch, capsys):
    install(monkeypatch, FakeToolchain(stdout="THIS TEST TOO SHALL PASS"))
    exercise = make_exercise(workdir, "testSuccess", FINISHED_SOURCE, mode=Mode.TEST)
    run(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_run_test_failure(workdir, monkeypatch):
    install(monkeypatch, FakeToolchain(run_ok=False))
    exercise = make_exercise(workdir, "testNotPassed", FINISHED_SOURCE, mode=Mode.TEST)
    with pytest.raises(ExerciseFailed) as info:
        run(exercise, False)
    assert info.value.exercise is exercise


def test_run_build_script_writes_manifest(workdir, monkeypatch):
    (workdir / "exercises" / "tests").mkdir(parents=True)
    fake = install(monkeypatch, FakeToolchain())
    exercise = make_exercise(workdir, "build", FINISHED_SOURCE, mode=Mode.BUILD_SCRIPT)
    run(exercise, False)
    manifest = (workdir / BUILD_SCRIPT_CARGO_TOML_PATH).read_text(encoding="utf-8")
    assert f'name = "{exercise.name}"' in manifest
    assert f'path = "{exercise.name}.rs"' in manifest
    assert fake.calls == [["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]]


def test_reset_stashes_exercise(workdir):
    exercise = make_exercise(workdir, "intro1", FINISHED_SOURCE)
    with mock.patch("drillrunner.run.subprocess.Popen") as popen:
        reset(exercise)
    popen.assert_called_once_with(["git", "stash", "--", str(exercise.path)])


def test_reset_raises_when_git_is_missing(workdir):
    exercise = make_exercise(workdir, "intro1", FINISHED_SOURCE)
    with mock.patch("drillrunner.run.subprocess.Popen", side_effect=FileNotFoundError("git")):
        with pytest.raises(ExerciseFailed) as info:
            reset(exercise)
    assert info.value.exercise is exercise
    assert isinstance(info.value.__cause__, FileNotFoundError)