"""Command line entry point for the exercise runner."""

from __future__ import annotations

import argparse
import math
import subprocess
import sys
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from . import ui
from .cicv import cicv_verify
from .exercise import Exercise, load_exercises
from .project import RustAnalyzerProject
from .run import reset, run
from .verify import ExerciseFailed, verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"

WELCOME = r"""       welcome to...
     _      _ _ _
  __| |_ __(_) | |_ __ _   _ _ __  _ __   ___ _ __
 / _` | '__| | | | '__| | | | '_ \| '_ \ / _ \ '__|
| (_| | |  | | | | |  | |_| | | | | | | |  __/ |
 \__,_|_|  |_|_|_|_|   \__,_|_| |_|_| |_|\___|_|"""

DEFAULT_OUT = """Thanks for installing drillrunner!

Is this your first time? Don't worry, these exercises are made for beginners!
Before you get started, here's a couple of notes about how it works:

1. The central concept is that you solve exercises. These exercises usually
   have some sort of syntax error in them, which will cause them to fail
   compilation or testing. Sometimes there's a logic error instead of a syntax
   error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   the runner will be able to move on to the next exercise.
2. If you run in watch mode (which we recommend), it'll automatically start
   with the first exercise. Don't get confused by an error message popping up
   as soon as you start! This is part of the exercise that you're supposed to
   solve, so open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `drillrunner hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue in the
   project's tracker. We look at every issue, and sometimes, other learners do
   too so you can help each other out!
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `drillrunner lsp`.

Got all that? Great! To get started, run `drillrunner watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the finish line!           |
+----------------------------------------------------+

We hope you enjoyed working through the exercises!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""


class _Parser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="drillrunner",
        description="A collection of small exercises to get you used to writing and reading code",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("verify", help="Verifies all exercises according to the recommended order")

    watch_parser = commands.add_parser("watch", help="Reruns `verify` when files were edited")
    watch_parser.add_argument(
        "--success-hints", action="store_true", help="show hints on success"
    )

    for name, text in (
        ("run", "Runs/Tests a single exercise"),
        ("reset", 'Resets a single exercise using "git stash -- <filename>"'),
        ("hint", "Returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser("list", help="Lists the available exercises")
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        default=None,
        help="provide a string to match exercise names; comma separated patterns are acceptable",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only exercises that have been solved"
    )

    commands.add_parser("lsp", help="Enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="cicvverify")
    return parser


def rustc_exists() -> bool:
    """Whether the compiler can be started and reports its version."""
    try:
        proc = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return proc.returncode == 0


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Return the named exercise, or the first pending one for "next".

    Raises LookupError with a message for the user when nothing matches.
    """
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise LookupError(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise LookupError(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Iterable[Exercise],
    paths: bool = False,
    names: bool = False,
    pattern: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> Iterator[str]:
    """Yield the lines of the exercise listing, ending with a progress line."""
    if not paths and not names:
        yield f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}\n"

    filters = [f for f in (pattern or "").lower().split(",") if f.strip()]
    done_count = 0
    total = 0
    for exercise in exercises:
        total += 1
        fname = str(exercise.path)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        matches = any(f in exercise.name or f in fname for f in filters)
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or pattern is None):
            if paths:
                yield f"{fname}\n"
            elif names:
                yield f"{exercise.name}\n"
            else:
                yield f"{exercise.name:<17}\t{fname:<46}\t{status:<7}\n"

    percentage = done_count / total * 100.0 if total else math.nan
    shown = "NaN" if math.isnan(percentage) else f"{percentage:.1f}"
    yield f"Progress: You completed {done_count} / {total} exercises ({shown} %).\n"


def _cmd_list(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        for line in list_exercises(
            exercises, args.paths, args.names, args.filter, args.unsolved, args.solved
        ):
            sys.stdout.write(line)
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _cmd_run(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        run(find_exercise(args.name, exercises), verbose)
    except LookupError as exc:
        print(exc)
        return 1
    except ExerciseFailed:
        return 1
    return 0


def _cmd_reset(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        reset(find_exercise(args.name, exercises))
    except LookupError as exc:
        print(exc)
        return 1
    except ExerciseFailed:
        return 1
    return 0


def _cmd_hint(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        exercise = find_exercise(args.name, exercises)
    except LookupError as exc:
        print(exc)
        return 1
    print(exercise.hint)
    return 0


def _cmd_verify(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        verify(exercises, (0, len(exercises)), verbose, False)
    except ExerciseFailed:
        return 1
    return 0


def _cmd_cicv(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        cicv_verify(exercises)
    except OSError as exc:
        print(f"Failed to write the check result: {exc}")
        return 1
    return 0


def _cmd_lsp(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?")
        return 1
    project.exercises_to_json()

    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercises folder")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _cmd_watch(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        status = watch(exercises, verbose, args.success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your 'inotify limit' has been reached."
        )
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if ui.no_emoji() else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying the exercises!")
        print(
            "If you want to continue working on the exercises at a later point, "
            "you can simply run `drillrunner watch` again"
        )
    return 0


_COMMANDS = {
    "list": _cmd_list,
    "run": _cmd_run,
    "reset": _cmd_reset,
    "hint": _cmd_hint,
    "verify": _cmd_verify,
    "cicvverify": _cmd_cicv,
    "lsp": _cmd_lsp,
    "watch": _cmd_watch,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, run the chosen command and return the exit status."""
    args = _build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exercises directory")
        print("Try `cd` into the directory that holds info.toml!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install the compiler, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    return _COMMANDS[args.command](args, exercises, verbose)