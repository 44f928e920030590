import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from rustlings.exercise import (
    ContextLine,
    Exercise,
    ExerciseError,
    ExerciseOutput,
    Mode,
    State,
    clean,
    load_exercises,
    temp_file,
)

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeRunner:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        returncode, stdout, stderr = self.results.pop(0) if self.results else (0, b"", b"")
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(directory, name, text):
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


def test_pending_state(workdir):
    path = _write(workdir, "pending_exercise.rs", PENDING)
    exercise = Exercise("pending_exercise", path, Mode.COMPILE, "")
    expected = (
        ContextLine("// fake_exercise", 1, False),
        ContextLine("", 2, False),
        ContextLine("// I AM NOT DONE", 3, True),
        ContextLine("", 4, False),
        ContextLine("fn main() {", 5, False),
    )
    assert exercise.state() == State(expected)
    assert exercise.looks_done() is False


def test_finished_exercise(workdir):
    path = _write(workdir, "finished_exercise.rs", FINISHED)
    exercise = Exercise("finished_exercise", path, Mode.COMPILE, "")
    assert exercise.state() == State()
    assert exercise.looks_done() is True


def test_marker_on_first_line_has_no_leading_context(workdir):
    path = _write(workdir, "t.rs", "// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n")
    state = Exercise("t", path, Mode.TEST).state()
    assert [c.number for c in state.context] == [1, 2, 3]
    assert [c.important for c in state.context] == [True, False, False]


@pytest.mark.parametrize(
    "marker, done",
    [
        ("    /// I   AM  NOT DONE", False),
        ("//I AM NOT DONE", False),
        ("// I AM DONE", True),
        ("let x = 1; // I AM NOT DONE", True),
    ],
)
def test_marker_variants(workdir, marker, done):
    path = _write(workdir, "m.rs", f"fn main() {{}}\n{marker}\n")
    assert Exercise("m", path, Mode.COMPILE).looks_done() is done


def test_crlf_line_endings_are_stripped(workdir):
    path = _write(workdir, "c.rs", "a\r\n// I AM NOT DONE\r\nb\r\n")
    state = Exercise("c", path, Mode.COMPILE).state()
    assert [c.line for c in state.context] == ["a", "// I AM NOT DONE", "b"]


def test_clean(workdir):
    path = _write(workdir, "pending_exercise.rs", PENDING)
    Path(temp_file()).touch()
    exercise = Exercise("example", path, Mode.COMPILE, "")
    with patch("subprocess.run", FakeRunner()):
        compiled = exercise.compile()
    assert Path(temp_file()).exists()
    with compiled:
        pass
    assert not Path(temp_file()).exists()


def test_clean_ignores_missing_file(workdir):
    clean()
    assert not Path(temp_file()).exists()


def test_compile_command_for_compile_mode(workdir):
    runner = FakeRunner()
    exercise = Exercise("intro1", Path("intro1.rs"), Mode.COMPILE)
    with patch("subprocess.run", runner):
        exercise.compile().close()
    assert runner.calls == [
        ["rustc", "intro1.rs", "-o", temp_file(), "--color", "always", "--edition", "2021"]
    ]


def test_compile_failure_raises_and_cleans(workdir):
    Path(temp_file()).touch()
    exercise = Exercise("bad", Path("bad.rs"), Mode.COMPILE)
    with patch("subprocess.run", FakeRunner((1, b"", b"error: expected pattern"))):
        with pytest.raises(ExerciseError) as info:
            exercise.compile()
    assert info.value.output.stderr == "error: expected pattern"
    assert not Path(temp_file()).exists()


def test_exercise_with_output(workdir):
    runner = FakeRunner((0, b"", b""), (0, b"THIS TEST TOO SHALL PASS\n", b""))
    exercise = Exercise("exercise_with_output", Path("testSuccess.rs"), Mode.TEST)
    with patch("subprocess.run", runner):
        with exercise.compile() as compiled:
            out = compiled.run()
    assert "THIS TEST TOO SHALL PASS" in out.stdout
    assert runner.calls[0][:3] == ["rustc", "--test", "testSuccess.rs"]
    assert runner.calls[1] == [temp_file(), "--show-output"]


def test_run_failure_raises(workdir):
    runner = FakeRunner((0, b"", b""), (101, b"not_passing FAILED", b"panicked"))
    exercise = Exercise("testNotPassed", Path("testNotPassed.rs"), Mode.TEST)
    with patch("subprocess.run", runner):
        compiled = exercise.compile()
        with pytest.raises(ExerciseError) as info:
            compiled.run()
        compiled.close()
    assert info.value.output == ExerciseOutput("not_passing FAILED", "panicked")


def test_build_script_writes_manifest_and_skips_run(workdir):
    (workdir / "exercises" / "tests").mkdir(parents=True)
    runner = FakeRunner()
    exercise = Exercise("build1", Path("exercises/tests/build1.rs"), Mode.BUILD_SCRIPT)
    with patch("subprocess.run", runner):
        with exercise.compile() as compiled:
            out = compiled.run()
    manifest = (workdir / "exercises" / "tests" / "Cargo.toml").read_text()
    assert 'name = "build1"' in manifest
    assert manifest.endswith('path = "build1.rs"')
    assert out == ExerciseOutput("", "")
    assert runner.calls == [
        ["cargo", "test", "--manifest-path", os.path.join("exercises", "tests", "Cargo.toml")]
    ]


def test_clippy_runs_rustc_clean_and_clippy(workdir):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    runner = FakeRunner()
    exercise = Exercise("clippy1", Path("exercises/clippy/clippy1.rs"), Mode.CLIPPY)
    with patch("subprocess.run", runner):
        with exercise.compile() as compiled:
            compile_calls = list(runner.calls)
            out = compiled.run()
    assert out == ExerciseOutput("", "")
    assert [call[:2] for call in compile_calls] == [
        ["rustc", "exercises/clippy/clippy1.rs"],
        ["cargo", "clean"],
        ["cargo", "clippy"],
    ]
    assert compile_calls[-1][-1] == "clippy::float_cmp"
    assert runner.calls[len(compile_calls)][0] == temp_file()
    assert "[[bin]]" in (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()


def test_manifest_write_failure(workdir, monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = Exercise("clippy1", Path("clippy1.rs"), Mode.CLIPPY)
    with patch("subprocess.run", FakeRunner()):
        with pytest.raises(RuntimeError, match="Failed to write Clippy Cargo.toml file."):
            exercise.compile()


def test_missing_compiler_raises(workdir):
    exercise = Exercise("intro1", Path("intro1.rs"), Mode.COMPILE)
    with patch("subprocess.run", side_effect=FileNotFoundError("rustc")):
        with pytest.raises(RuntimeError, match="Failed to run 'compile' command."):
            exercise.compile()


def test_str_is_path():
    exercise = Exercise("if1", Path("exercises/if/if1.rs"), Mode.TEST)
    assert str(exercise) == str(Path("exercises/if/if1.rs"))


def test_temp_file_is_per_process():
    assert temp_file().startswith(f"./temp_{os.getpid()}_")


def test_load_exercises(tmp_path):
    info = tmp_path / "info.toml"
    info.write_text(
        '[[exercises]]\nname = "intro1"\npath = "exercises/intro/intro1.rs"\n'
        'mode = "compile"\nhint = "No hints this time ;)"\n\n'
        '[[exercises]]\nname = "build1"\npath = "exercises/tests/build1.rs"\n'
        'mode = "buildscript"\nhint = ""\n',
        encoding="utf-8",
    )
    exercises = load_exercises(info)
    assert [e.name for e in exercises] == ["intro1", "build1"]
    assert exercises[0].mode is Mode.COMPILE
    assert exercises[1].mode is Mode.BUILD_SCRIPT
    assert exercises[0].path == Path("exercises/intro/intro1.rs")
    assert exercises[0].hint == "No hints this time ;)"


def test_load_exercises_rejects_unknown_mode(tmp_path):
    info = tmp_path / "info.toml"
    info.write_text(
        '[[exercises]]\nname = "x"\npath = "x.rs"\nmode = "explode"\nhint = ""\n',
        encoding="utf-8",
    )
    with pytest.raises(ValueError):
        load_exercises(info)


def test_load_exercises_requires_hint(tmp_path):
    info = tmp_path / "info.toml"
    info.write_text(
        '[[exercises]]\nname = "x"\npath = "x.rs"\nmode = "test"\n', encoding="utf-8"
    )
    with pytest.raises(ValueError, match="hint"):
        load_exercises(info)