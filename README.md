# rustlings

A command-line runner for a course of small Rust exercises. Each exercise is a
`.rs` file with a compile error or a failing test. You fix it, and the runner
checks it with the Rust toolchain and tells you how you did.

An exercise counts as pending while its source still has a line such as
`// I AM NOT DONE`. Remove that comment once you are happy with your solution
and the runner moves on to the next exercise.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH`, and `cargo` for Clippy and
  build-script exercises
- An `info.toml` in the current directory listing the exercises
- `git`, for the `reset` command

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## The exercise list

`info.toml` lists the exercises in the recommended order. Every entry needs all
four fields:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

`mode` decides how an exercise is checked:

- `compile` – built with `rustc` as a binary, then run.
- `test` – built with `rustc --test`, then the test harness is run.
- `clippy` – a `Cargo.toml` is written to `./exercises/clippy/Cargo.toml`,
  then `cargo clippy` runs with warnings denied.
- `buildscript` – a `Cargo.toml` is written to `./exercises/tests/Cargo.toml`,
  then `cargo test` runs.

## Usage

Run every command from the directory that holds `info.toml`. Apart from `-v`,
every command exits with status 1 if `info.toml` is missing or `rustc` cannot
be run.

```
rustlings                  # show the welcome text
rustlings -v               # print the version
rustlings watch            # re-verify whenever a file under ./exercises changes
rustlings watch --success-hints
rustlings verify           # verify all exercises in order, stop at the first failure
rustlings run intro1       # build and run one exercise
rustlings run next         # run the first exercise not yet done
rustlings hint intro1      # print the hint for an exercise
rustlings reset intro1     # start `git stash -- <file>` for the exercise
rustlings list             # table of names, paths and Done/Pending status
rustlings list --paths --unsolved
rustlings list --filter variables,if
rustlings lsp              # write rust-project.json for rust-analyzer
rustlings cicvverify       # grade every exercise and write a JSON report
```

`run`, `reset` and `hint` need an exercise name; without one, or with a name
that is not in `info.toml`, they exit with status 1. `run` and `verify` also
exit with status 1 when an exercise fails.

`--nocapture`, given before the subcommand, prints the output of test
exercises:

```
rustlings --nocapture run if1
```

`list` takes `-p/--paths`, `-n/--names`, `-u/--unsolved`, `-s/--solved` and
`-f/--filter`. The filter is a comma-separated list of patterns matched
against exercise names and paths. The listing ends with a progress line.

`verify` and `watch` stop at an exercise that still has its `I AM NOT DONE`
comment and show the lines around it.

In watch mode type `hint`, `clear`, `quit`, `help`, or `!<cmd>` to run a
command such as `!rustc --explain E0381`.

`lsp` takes the standard library sources from `RUST_SRC_PATH`, or else from
`rustc --print sysroot`. It adds every `.rs` file under `./exercises` as a
crate to `./rust-project.json`.

Set `NO_EMOJI` in the environment to get plain markers in the output.

## Grading report

`rustlings cicvverify` runs every exercise at the same time and prints progress
as each one finishes. It then writes `.github/result/check_result.json`, and
that directory must already exist. The report lists each exercise's `name` and
`result`, a `user_name` (always `null`), and `statistics` with
`total_exercations`, `total_succeeds`, `total_failures` and `total_time` in
seconds.

## Using it as a library

- `rustlings.exercise.load_exercises(path)` reads `info.toml` into a list of
  `Exercise` objects.
- `Exercise.state()` returns a `State` whose `context` holds the `ContextLine`s
  around the marker. The context is empty once the exercise is done.
- `Exercise.looks_done()` returns whether the marker has been removed.
- `Exercise.compile()` returns a `CompiledExercise`, a context manager that
  removes the built binary on exit. It raises `ExerciseError` with the captured
  output when the build fails.
- `rustlings.verify.verify(exercises, (done, total), verbose, success_hints)`
  raises `VerificationFailed` at the first exercise that fails or is pending.
- `rustlings.run.run(exercise, verbose)` raises `RunFailed` on failure.
- `rustlings.cli.main(argv)` returns the exit status.

## Limitations

`reset` starts `git stash` and returns without waiting for it to finish, so a
failing stash does not change the exit status. Compiled binaries are written as
`./temp_<pid>_<thread>` in the current directory while an exercise runs.