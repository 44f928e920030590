"""Watch mode: re-verify exercises whenever their files change."""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustlings.exercise import Exercise
from rustlings.verify import VerificationFailed, verify

EXERCISES_DIR = "./exercises"
DEBOUNCE_SECONDS = 1.0

_HELP = """\
Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = enum.auto()
    UNFINISHED = enum.auto()


@dataclass
class WatchShell:
    """The interactive commands read from standard input during watch mode."""

    hint: str | None = None
    should_quit: threading.Event = field(default_factory=threading.Event)

    def handle(self, line: str) -> None:
        """Carry out one command typed by the user."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print(_HELP)
        elif command.startswith("!"):
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts)
            except OSError as exc:
                print(f"failed to execute command `{cmd}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def start(self, stream: TextIO | None = None) -> threading.Thread:
        """Read commands from the stream (standard input by default) in the background."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(
            target=self._read_loop, args=(stream or sys.stdin,), daemon=True
        )
        thread.start()
        return thread

    def _read_loop(self, stream: TextIO) -> None:
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)


class _Forwarder(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def _forward(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _ends_with(path: Path, tail: Path) -> bool:
    parts = tail.parts
    return bool(parts) and path.parts[-len(parts):] == parts


def _next_batch(events: queue.Queue[str]) -> list[str]:
    """Wait up to a second for a change, then gather changes until things are quiet."""
    try:
        first = events.get(timeout=DEBOUNCE_SECONDS)
    except queue.Empty:
        return []
    paths = {first: None}
    while True:
        try:
            paths[events.get(timeout=DEBOUNCE_SECONDS)] = None
        except queue.Empty:
            return list(paths)


def _reverify(
    changed: Path,
    exercises: Sequence[Exercise],
    verbose: bool,
    success_hints: bool,
) -> None:
    filepath = changed.resolve()
    edited = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    pending = [edited] if edited is not None else []
    pending.extend(
        e for e in exercises if not e.looks_done() and not _ends_with(filepath, e.path)
    )
    num_done = sum(1 for e in exercises if e.looks_done())
    _clear_screen()
    verify(pending, (num_done, len(exercises)), verbose, success_hints)


def watch(
    exercises: Sequence[Exercise],
    verbose: bool = False,
    success_hints: bool = False,
) -> WatchStatus:
    """Verify the exercises, then keep re-verifying as files under ./exercises change."""
    events: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_Forwarder(events), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationFailed as exc:
            shell = WatchShell(hint=exc.exercise.hint)
        else:
            return WatchStatus.FINISHED

        shell.start()
        while True:
            for name in _next_batch(events):
                changed = Path(name)
                if changed.suffix != ".rs" or not changed.exists():
                    continue
                try:
                    _reverify(changed, exercises, verbose, success_hints)
                except VerificationFailed as exc:
                    shell.hint = exc.exercise.hint
                else:
                    return WatchStatus.FINISHED
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()