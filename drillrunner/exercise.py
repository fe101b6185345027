"""Exercises: compiling, running and checking their completion marker."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

from . import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_PATTERN = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file_path() -> str:
    """Return a temporary binary path unique to this process and thread."""
    return f"./temp_{os.getpid()}_ThreadId{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, ignoring a missing file."""
    try:
        os.remove(temp_file_path())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is built and checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state; an empty context means the exercise is done."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


@dataclass
class ExerciseOutput:
    """Captured output of a compiler or exercise run."""

    stdout: str
    stderr: str
    success: bool = True


class CompileError(Exception):
    """Raised when an exercise fails to compile."""

    def __init__(self, output: ExerciseOutput):
        super().__init__(output.stderr)
        self.output = output


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _lines(source: str) -> list[str]:
    pieces = source.split("\n")
    if pieces and pieces[-1] == "":
        pieces.pop()
    return [piece.removesuffix("\r") for piece in pieces]


def _cargo_toml(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


def _write_cargo_toml(path: str, name: str) -> None:
    if ui.no_emoji():
        message = "Failed to write Clippy Cargo.toml file."
    else:
        message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
    try:
        Path(path).write_text(_cargo_toml(name), encoding="utf-8")
    except OSError as exc:
        raise OSError(message) from exc


class CompiledExercise:
    """A successfully built exercise; closing it removes the binary."""

    def __init__(self, exercise: Exercise):
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the built binary and capture its output."""
        if self.exercise.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput("", "")
        arg = "--show-output" if self.exercise.mode is Mode.TEST else ""
        proc = subprocess.run([temp_file_path(), arg], capture_output=True)
        return ExerciseOutput(
            stdout=_decode(proc.stdout),
            stderr=_decode(proc.stderr),
            success=proc.returncode == 0,
        )

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class Exercise:
    """An exercise as listed in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def _rustc(self, *extra: str) -> list[str]:
        return [
            "rustc",
            *extra,
            str(self.path),
            "-o",
            temp_file_path(),
            *RUSTC_COLOR_ARGS,
            *RUSTC_EDITION_ARGS,
        ]

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompileError with the output on failure."""
        if self.mode is Mode.COMPILE:
            proc = subprocess.run(self._rustc(), capture_output=True)
        elif self.mode is Mode.TEST:
            proc = subprocess.run(self._rustc("--test"), capture_output=True)
        elif self.mode is Mode.CLIPPY:
            _write_cargo_toml(CLIPPY_CARGO_TOML_PATH, self.name)
            # Build a runnable binary too; clippy reports any compile failure.
            subprocess.run(self._rustc(), capture_output=True)
            # A clean is required for clippy to report every lint.
            subprocess.run(
                ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS],
                capture_output=True,
            )
            proc = subprocess.run(
                [
                    "cargo",
                    "clippy",
                    "--manifest-path",
                    CLIPPY_CARGO_TOML_PATH,
                    *RUSTC_COLOR_ARGS,
                    "--",
                    "-D",
                    "warnings",
                    "-D",
                    "clippy::float_cmp",
                ],
                capture_output=True,
            )
        else:
            _write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
            proc = subprocess.run(
                ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH],
                capture_output=True,
            )

        if proc.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompileError(
            ExerciseOutput(
                stdout=_decode(proc.stdout),
                stderr=_decode(proc.stderr),
                success=False,
            )
        )

    def state(self) -> State:
        """Find the pending marker and the lines around it."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_PATTERN.search(source):
            return State()

        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_PATTERN.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError(f"pending marker in {self.path} spans several lines")

        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=index + 1, important=index == matched)
                for index, line in enumerate(lines[first : last + 1], start=first)
            )
        )

    def looks_done(self) -> bool:
        """Whether the pending marker has been removed."""
        return self.state().done()

    def __str__(self) -> str:
        return str(self.path)


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from a TOML file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        return [
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
            for entry in data["exercises"]
        ]
    except KeyError as exc:
        raise ValueError(f"missing field {exc.args[0]!r} in {path}") from exc