"""Exercises listed in info.toml: compiling, running and checking progress."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

from rustlings import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = Path("./exercises/clippy/Cargo.toml")
BUILD_SCRIPT_CARGO_TOML_PATH = Path("./exercises/tests/Cargo.toml")


def temp_file() -> str:
    """Return a binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the compiled binary, ignoring a missing file."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the `I AM NOT DONE` marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Progress of an exercise; an empty context means it is done."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a finished command."""

    stdout: str
    stderr: str


class ExerciseError(Exception):
    """A compile or run step failed; the captured output is attached."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=result.stdout.decode("utf-8", errors="replace"),
        stderr=result.stderr.decode("utf-8", errors="replace"),
    )


def _spawn(args: list[str], failure_message: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True)
    except OSError as exc:
        raise RuntimeError(failure_message) from exc


def _lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


class CompiledExercise:
    """A successfully built exercise; closing it removes the binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        return self.exercise.run()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args) -> None:
        self.close()


@dataclass
class Exercise:
    """One exercise: its name, source file, checking mode and hint."""

    name: str
    path: Path
    mode: Mode
    hint: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _manifest(self) -> str:
        return (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )

    def _write_manifest(self, target: Path) -> None:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if ui.no_emoji()
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            target.write_text(self._manifest(), encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(message) from exc

    def _rustc(self, *extra: str) -> list[str]:
        return [
            "rustc",
            *extra,
            str(self.path),
            "-o",
            temp_file(),
            *RUSTC_COLOR_ARGS,
            *RUSTC_EDITION_ARGS,
        ]

    def _build(self) -> subprocess.CompletedProcess:
        failure = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                return _spawn(self._rustc(), failure)
            case Mode.TEST:
                return _spawn(self._rustc("--test"), failure)
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a binary too, so the exercise can be run afterwards.
                _spawn(self._rustc(), "Failed to compile!")
                manifest = str(CLIPPY_CARGO_TOML_PATH)
                _spawn(
                    ["cargo", "clean", "--manifest-path", manifest, *RUSTC_COLOR_ARGS],
                    "Failed to run 'cargo clean'",
                )
                return _spawn(
                    [
                        "cargo",
                        "clippy",
                        "--manifest-path",
                        manifest,
                        *RUSTC_COLOR_ARGS,
                        "--",
                        "-D",
                        "warnings",
                        "-D",
                        "clippy::float_cmp",
                    ],
                    failure,
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                return _spawn(
                    ["cargo", "test", "--manifest-path", str(BUILD_SCRIPT_CARGO_TOML_PATH)],
                    failure,
                )
        raise ValueError(f"unknown mode {self.mode!r}")

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise ExerciseError with the output on failure."""
        result = self._build()
        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise ExerciseError(_output(result))

    def run(self) -> ExerciseOutput:
        """Run the built binary; raise ExerciseError if it exits unsuccessfully."""
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        arg = "--show-output" if self.mode is Mode.TEST else ""
        result = _spawn([temp_file(), arg], "Failed to run 'run' command")
        output = _output(result)
        if result.returncode != 0:
            raise ExerciseError(output)
        return output

    def state(self) -> State:
        """Find the `I AM NOT DONE` marker and the lines around it."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()

        lines = _lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError("This should not happen at all")

        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=i + 1, important=i == matched)
                for i, line in enumerate(lines)
                if first <= i <= last
            )
        )

    def looks_done(self) -> bool:
        """Whether the marker has been removed from the source file."""
        return self.state().done()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    exercises = []
    for entry in data.get("exercises", []):
        try:
            exercises.append(
                Exercise(
                    name=entry["name"],
                    path=Path(entry["path"]),
                    mode=Mode(entry["mode"]),
                    hint=entry["hint"],
                )
            )
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r} in exercise entry") from exc
    return exercises