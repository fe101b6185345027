# drillrunner

A terminal companion for working through a folder of small Rust exercises.
Each exercise is a single source file that does not compile, or fails its
tests, until you fix it. drillrunner compiles and runs exercises in the
listed order, shows what went wrong, keeps track of which ones you have
finished, and reruns the checks whenever a file under `./exercises` changes.

## Requirements

- Python 3.11 or later
- `rustc` on your `PATH` (and `cargo` for exercises in `clippy` or
  `buildscript` mode)

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Getting started

Run the commands from the exercise directory, the one that holds
`info.toml`. Every command except `--version` stops with exit status 1 when
that file is missing or when `rustc --version` cannot be run. The file lists
the exercises in order:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment to move on."
```

`mode` is one of:

- `compile`: built with `rustc`, then the binary is run
- `test`: built with `rustc --test`, then the test harness is run
- `clippy`: a `Cargo.toml` is written to `./exercises/clippy/Cargo.toml` and
  `cargo clippy` is run with warnings denied
- `buildscript`: a `Cargo.toml` is written to `./exercises/tests/Cargo.toml`
  and `cargo test` is run

An exercise counts as unfinished while its file still has a line such as
`// I AM NOT DONE`. When it compiles and passes, remove that line to move on
to the next one; until then the runner shows the lines around it.

## Commands

```
drillrunner                     # welcome text and a short guide
drillrunner --version           # print the version
drillrunner watch               # verify everything, then re-verify on each save
drillrunner watch --success-hints
drillrunner verify              # check all exercises in order, stop at the first failure
drillrunner run <name>          # compile and run (or test) one exercise
drillrunner run next            # run the first exercise that is not done yet
drillrunner hint <name>         # show the hint for an exercise
drillrunner reset <name>        # start `git stash -- <file>` for the exercise
drillrunner list                # table of names, paths and status
drillrunner list --paths        # only the paths
drillrunner list --names        # only the names
drillrunner list --filter if,var   # comma-separated patterns matched on name or path
drillrunner list --solved       # only finished exercises
drillrunner list --unsolved     # only unfinished exercises
drillrunner lsp                 # write rust-project.json for rust-analyzer
drillrunner cicvverify          # run every exercise and write a JSON report
```

Add `--nocapture` before the command to see the output of test exercises.
`run`, `verify`, `hint` and `reset` exit with status 1 when the exercise is
not found or does not pass. Usage errors also exit with status 1.

### Watch mode

`watch` first verifies all exercises. If one is unfinished, it keeps
watching `./exercises` and, when a `.rs` file is created or modified,
verifies the changed exercise first and then the remaining unfinished ones.
While it is running you can type:

- `hint`: show the hint for the exercise that failed last
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, for example `!rustc --explain E0381`
- `help`: list these commands

### Language server support

`lsp` writes `./rust-project.json` with one crate for every `.rs` file below
`./exercises`. The standard library sources are taken from the
`RUST_SRC_PATH` environment variable when it is set, otherwise from
`rustc --print sysroot`.

### Grading report

`cicvverify` runs every exercise concurrently, prints the progress of each
(in Chinese), and writes the outcome of each exercise, the number of
successes and failures, and the total time in seconds to
`.github/result/check_result.json`. The `.github/result` directory must
already exist; otherwise the command reports the error and exits with
status 1.

### Output without emoji

Set the `NO_EMOJI` environment variable to use plain markers in messages.

## Using it from Python

The pieces behind the commands can be used directly:

```python
from drillrunner.exercise import load_exercises
from drillrunner.verify import ExerciseFailed, verify

exercises = load_exercises("info.toml")
pending = [e for e in exercises if not e.looks_done()]
try:
    verify(exercises, (0, len(exercises)))
except ExerciseFailed as failed:
    print("stuck on", failed.exercise.name)
```

- `drillrunner.exercise`: `Exercise`, `Mode`, `State`, `ContextLine`,
  `CompiledExercise`, `CompileError`, `load_exercises`
- `drillrunner.verify`: `verify`, `test`, `prompt_for_completion`,
  `ExerciseFailed`
- `drillrunner.run`: `run`, `reset`
- `drillrunner.watch`: `watch`, `WatchStatus`, `HintHolder`, `handle_command`
- `drillrunner.cicv`: `cicv_verify`, `ExerciseCheckList`, `ExerciseResult`,
  `ExerciseStatistics`
- `drillrunner.project`: `RustAnalyzerProject`, `Crate`
- `drillrunner.cli`: `main`, `find_exercise`, `list_exercises`, `rustc_exists`

## What it does not do

drillrunner does not ship any exercises or an `info.toml`; it works on the
ones in the directory it is started from. It does not install or manage a
Rust toolchain, and `reset` only starts `git stash` without waiting for it
or checking that the directory is a git repository.