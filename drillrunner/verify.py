"""Checking exercises in order and reporting progress."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from . import ui
from .exercise import CompiledExercise, CompileError, Exercise, Mode

_BAR_WIDTH = 60


class ExerciseFailed(Exception):
    """Raised when an exercise does not build, pass or is still pending."""

    def __init__(self, exercise: Exercise):
        super().__init__(f"{exercise} is not finished")
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True, emoji=False)


def _spinner(message: str) -> Status:
    return _console().status(message)


def _percentage(position: int, total: int) -> float:
    return position / total * 100.0 if total else 100.0


def _print_progress(position: int, total: int) -> None:
    filled = min(_BAR_WIDTH, _BAR_WIDTH * position // total) if total else _BAR_WIDTH
    text = Text("Progress: [")
    text.append("#" * filled, style="green")
    if filled < _BAR_WIDTH:
        text.append(">" + "-" * (_BAR_WIDTH - filled - 1), style="red")
    text.append(f"] {position}/{total} ({_percentage(position, total):.1f} %)")
    _console().print(text)


def _separator() -> Text:
    return Text("====================", style="bold")


def _build(exercise: Exercise, message: str) -> CompiledExercise | None:
    """Compile the exercise, reporting a failure and returning None."""
    try:
        with _spinner(message):
            return exercise.compile()
    except CompileError as err:
        ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        return None


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    compiled = _build(exercise, f"Compiling {exercise}...")
    if compiled is None:
        return False
    compiled.close()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    compiled = _build(exercise, f"Compiling {exercise}...")
    if compiled is None:
        return False
    with compiled:
        with _spinner(f"Running {exercise}..."):
            output = compiled.run()
        if not output.success:
            ui.warn(f"Ran {exercise} with errors")
            print(output.stdout)
            print(output.stderr)
            return False
        return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    compiled = _build(exercise, f"Testing {exercise}...")
    if compiled is None:
        return False
    with compiled:
        with _spinner(f"Testing {exercise}..."):
            output = compiled.run()
        if not output.success:
            ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(output.stdout)
            return False
        if verbose:
            print(output.stdout)
        if interactive:
            return prompt_for_completion(exercise, None, success_hints)
        return True


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise ExerciseFailed at the first unfinished one."""
    position, total = progress
    _print_progress(position, total)
    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                finished = _compile_and_test(exercise, True, verbose, success_hints)
            case Mode.COMPILE:
                finished = _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                finished = _compile_only(exercise, success_hints)
        if not finished:
            raise ExerciseFailed(exercise)
        position += 1
        _print_progress(position, total)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise's test harness without prompting."""
    if not _compile_and_test(exercise, False, verbose, False):
        raise ExerciseFailed(exercise)


test.__test__ = False  # keep test collectors from picking this up


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done, otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    match exercise.mode:
        case Mode.COMPILE:
            ui.success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            ui.success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            ui.success(f"Successfully compiled {exercise}!")

    no_emoji = ui.no_emoji()
    if no_emoji:
        clippy_message = "The code is compiling, and Clippy is happy!"
    else:
        clippy_message = "The code is compiling, and 📎 Clippy 📎 is happy!"
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    console = _console()
    print()
    if no_emoji:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(_separator())
        print(prompt_output)
        console.print(_separator())
        print()
    if success_hints:
        print("Hints:")
        console.print(_separator())
        print(exercise.hint)
        console.print(_separator())
        print()

    print("You can keep working on this exercise,")
    remove_line = Text("or jump into the next one by removing the ")
    remove_line.append("`I AM NOT DONE`", style="bold")
    remove_line.append(" comment:")
    console.print(remove_line)
    print()
    for context_line in state.context:
        line = Text(f"{context_line.number:>2}", style="bold blue")
        line.append(" ")
        line.append("|", style="blue")
        line.append("  ")
        line.append(context_line.line, style="bold" if context_line.important else "")
        console.print(line)

    return False