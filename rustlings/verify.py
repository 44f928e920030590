"""Checking that exercises build, run and have been marked as finished."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.status import Status
from rich.text import Text

from rustlings import ui
from rustlings.exercise import CompiledExercise, Exercise, ExerciseError, Mode


class VerificationFailed(Exception):
    """An exercise failed to build, failed its run, or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} could not be verified")
        self.exercise = exercise


class RunMode(enum.Enum):
    """Whether a passing test exercise goes on to the completion prompt."""

    INTERACTIVE = enum.auto()
    NON_INTERACTIVE = enum.auto()


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True, markup=False, emoji=False)


def _stderr_console() -> Console:
    return Console(stderr=True, highlight=False)


@contextmanager
def _spinner(message: str) -> Iterator[Status]:
    with _stderr_console().status(Text(message)) as status:
        yield status


def _separator() -> Text:
    return Text("====================", style="bold")


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first failure."""
    num_done, total = progress
    step = 100.0 / total if total else 0.0
    percentage = num_done * step
    columns = (
        TextColumn("Progress:"),
        BarColumn(bar_width=60, style="red", complete_style="green", finished_style="green"),
        MofNCompleteColumn(),
        TextColumn("{task.fields[msg]}", markup=False),
    )
    with Progress(*columns, console=_stderr_console()) as bar:
        task = bar.add_task("", total=total, completed=num_done, msg=f"({percentage:.1f} %)")
        for exercise in exercises:
            if not _check(exercise, verbose, success_hints):
                raise VerificationFailed(exercise)
            percentage += step
            bar.update(task, advance=1, msg=f"({percentage:.1f} %)")


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(exercise, RunMode.INTERACTIVE, verbose, success_hints)
        case Mode.COMPILE:
            return _compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return _compile_only(exercise, success_hints)
    raise ValueError(f"unknown mode {exercise.mode!r}")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run the exercise's test harness without prompting."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except ExerciseError as exc:
        ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _spinner(f"Compiling {exercise}..."):
        with _compile(exercise):
            pass
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _spinner(f"Compiling {exercise}...") as status:
        with _compile(exercise) as compiled:
            status.update(Text(f"Running {exercise}..."))
            try:
                output = compiled.run()
            except ExerciseError as exc:
                ui.warn(f"Ran {exercise} with errors")
                print(exc.output.stdout)
                print(exc.output.stderr)
                raise VerificationFailed(exercise) from exc
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    with _spinner(f"Testing {exercise}..."):
        with _compile(exercise) as compiled:
            try:
                output = compiled.run()
            except ExerciseError as exc:
                ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
                print(exc.output.stdout)
                raise VerificationFailed(exercise) from exc
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


_SUCCESS_VERBS = {
    Mode.COMPILE: "ran",
    Mode.TEST: "tested",
    Mode.CLIPPY: "compiled",
    Mode.BUILD_SCRIPT: "compiled",
}


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is marked done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    ui.success(f"Successfully {_SUCCESS_VERBS[exercise.mode]} {exercise}!")

    no_emoji = ui.no_emoji()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if no_emoji
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    console = _console()
    console.print()
    if no_emoji:
        console.print(f"~*~ {success_message} ~*~")
    else:
        console.print(f"🎉 🎉  {success_message} 🎉 🎉")
    console.print()

    if prompt_output is not None:
        console.print("Output:")
        console.print(_separator())
        console.print(prompt_output)
        console.print(_separator())
        console.print()
    if success_hints:
        console.print("Hints:")
        console.print(_separator())
        console.print(exercise.hint)
        console.print(_separator())
        console.print()

    console.print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    console.print()
    for context_line in state.context:
        console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                (context_line.line, "bold" if context_line.important else ""),
            )
        )
    return False