"""Watch mode: re-check exercises whenever a source file changes."""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import ExerciseFailed, verify

WATCH_DIR = "./exercises"
_POLL_SECONDS = 1.0
_DEBOUNCE_SECONDS = 0.2

_HELP = (
    "Commands available to you in watch mode:\n"
    "  hint   - prints the current exercise's hint\n"
    "  clear  - clears the screen\n"
    "  quit   - quits watch mode\n"
    "  !<cmd> - executes a command, like `!rustc --explain E0381`\n"
    "  help   - displays this help message\n"
    "\n"
    "Watch mode automatically re-evaluates the current exercise\n"
    "when you edit a file's contents."
)


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class HintHolder:
    """Thread-safe holder of the hint for the exercise that failed last."""

    def __init__(self, hint: str | None = None):
        self._lock = threading.Lock()
        self._hint = hint

    def set(self, hint: str | None) -> None:
        with self._lock:
            self._hint = hint

    def get(self) -> str | None:
        with self._lock:
            return self._hint


def handle_command(command: str, hint_holder: HintHolder, quit_event: threading.Event) -> None:
    """Carry out one line typed in watch mode."""
    text = command.strip()
    if text == "hint":
        hint = hint_holder.get()
        if hint is not None:
            print(hint)
    elif text == "clear":
        print("\x1b[2J\x1b[1;1H")
    elif text == "quit":
        quit_event.set()
        print("Bye!")
    elif text == "help":
        print(_HELP)
    elif text.startswith("!"):
        cmd = text[1:]
        parts = cmd.split()
        if not parts:
            print("no command provided")
            return
        try:
            subprocess.run(parts)
        except OSError as exc:
            print(f"failed to execute command `{cmd}`: {exc}")
    else:
        print(f"unknown command: {text}")


def _shell_loop(hint_holder: HintHolder, quit_event: threading.Event) -> None:
    while not quit_event.is_set():
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError) as exc:
            print(f"error reading command: {exc}")
            return
        if not line:
            return
        handle_command(line, hint_holder, quit_event)


def _spawn_watch_shell(hint_holder: HintHolder, quit_event: threading.Event) -> None:
    print(
        "Welcome to watch mode! You can type 'help' to get an overview "
        "of the commands you can use here."
    )
    threading.Thread(target=_shell_loop, args=(hint_holder, quit_event), daemon=True).start()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[str]):
        super().__init__()
        self._changes = changes

    def _record(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._changes.put(os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)


def _clear_screen() -> None:
    print("\x1bc")


def _ends_with(path: Path, suffix: Path) -> bool:
    parts = suffix.parts
    return len(parts) <= len(path.parts) and path.parts[len(path.parts) - len(parts):] == parts


def _next_batch(changes: queue.Queue[str]) -> list[str]:
    """Wait for a change, then gather what arrives right after it."""
    try:
        first = changes.get(timeout=_POLL_SECONDS)
    except queue.Empty:
        return []
    batch = [first]
    while True:
        try:
            path = changes.get(timeout=_DEBOUNCE_SECONDS)
        except queue.Empty:
            break
        if path not in batch:
            batch.append(path)
    return batch


def _recheck(
    changed: Path,
    exercises: Sequence[Exercise],
    verbose: bool,
    success_hints: bool,
    hint_holder: HintHolder,
) -> bool:
    """Verify starting from the changed exercise; return True when all are done."""
    filepath = changed.resolve()
    current = [next((e for e in exercises if _ends_with(filepath, e.path)), None)]
    others = [e for e in exercises if not e.looks_done() and not _ends_with(filepath, e.path)]
    pending = [e for e in current if e is not None] + others
    num_done = sum(1 for e in exercises if e.looks_done())
    _clear_screen()
    try:
        verify(pending, (num_done, len(exercises)), verbose, success_hints)
    except ExerciseFailed as failed:
        hint_holder.set(failed.exercise.hint)
        return False
    return True


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then keep re-verifying as files under ./exercises change."""
    changes: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), WATCH_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except ExerciseFailed as failed:
            hint_holder = HintHolder(failed.exercise.hint)
        else:
            return WatchStatus.FINISHED

        quit_event = threading.Event()
        _spawn_watch_shell(hint_holder, quit_event)
        while True:
            for raw in _next_batch(changes):
                changed = Path(raw)
                if changed.suffix == ".rs" and changed.exists():
                    if _recheck(changed, exercises, verbose, success_hints, hint_holder):
                        return WatchStatus.FINISHED
            if quit_event.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()