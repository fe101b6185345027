"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from . import ui
from .exercise import CompileError, Exercise, Mode
from .verify import ExerciseFailed, test


def _status(message: str):
    return Console(highlight=False, soft_wrap=True, emoji=False).status(message)


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run one exercise; raise ExerciseFailed if it does not pass."""
    if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
        test(exercise, verbose)
    else:
        _compile_and_run(exercise)


def reset(exercise: Exercise) -> None:
    """Stash the changes made to the exercise file with git."""
    try:
        subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise ExerciseFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    try:
        with _status(f"Compiling {exercise}..."):
            compiled = exercise.compile()
    except CompileError as err:
        ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(err.output.stderr)
        raise ExerciseFailed(exercise) from err

    with compiled:
        with _status(f"Running {exercise}..."):
            output = compiled.run()

    if output.success:
        print(output.stdout)
        ui.success(f"Successfully ran {exercise}")
        return
    print(output.stdout)
    print(output.stderr)
    ui.warn(f"Ran {exercise} with errors")
    raise ExerciseFailed(exercise)