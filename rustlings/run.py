"""Running a single exercise and resetting it to its original state."""

from __future__ import annotations

import subprocess
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.status import Status
from rich.text import Text

from rustlings import ui
from rustlings.exercise import Exercise, ExerciseError, Mode
from rustlings.verify import VerificationFailed, test


class RunFailed(Exception):
    """The exercise could not be built, run or reset."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


@contextmanager
def _spinner(message: str) -> Iterator[Status]:
    with Console(stderr=True, highlight=False).status(Text(message)) as status:
        yield status


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise, or its tests; raise RunFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except VerificationFailed as exc:
                raise RunFailed(exercise) from exc
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)
        case _:
            raise ValueError(f"unknown mode {exercise.mode!r}")


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise RunFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    with _spinner(f"Compiling {exercise}...") as status:
        try:
            compiled = exercise.compile()
        except ExerciseError as exc:
            ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(exc.output.stderr)
            raise RunFailed(exercise) from exc

        with compiled:
            status.update(Text(f"Running {exercise}..."))
            try:
                output = compiled.run()
            except ExerciseError as exc:
                print(exc.output.stdout)
                print(exc.output.stderr)
                ui.warn(f"Ran {exercise} with errors")
                raise RunFailed(exercise) from exc

    print(output.stdout)
    ui.success(f"Successfully ran {exercise}")