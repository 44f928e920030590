import io
import sys

from rustlings.watch import WatchShell, WatchStatus, watch


def test_hint_prints_current_hint(capsys):
    shell = WatchShell(hint="Look at the types.")
    shell.handle("hint\n")
    assert capsys.readouterr().out == "Look at the types.\n"


def test_hint_without_failure_prints_nothing(capsys):
    shell = WatchShell()
    shell.handle("hint")
    assert capsys.readouterr().out == ""


def test_hint_follows_updates(capsys):
    shell = WatchShell(hint="first")
    shell.hint = "second"
    shell.handle("  hint  ")
    assert capsys.readouterr().out == "second\n"


def test_clear_prints_escape_sequence(capsys):
    WatchShell().handle("clear")
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_quit_sets_flag(capsys):
    shell = WatchShell()
    assert not shell.should_quit.is_set()
    shell.handle("quit")
    assert shell.should_quit.is_set()
    assert capsys.readouterr().out == "Bye!\n"


def test_help_lists_commands(capsys):
    WatchShell().handle("help")
    out = capsys.readouterr().out
    assert out.startswith("Commands available to you in watch mode:")
    for command in ("hint", "clear", "quit", "!<cmd>", "help"):
        assert f"  {command}" in out


def test_unknown_command(capsys):
    WatchShell().handle("foo\n")
    assert capsys.readouterr().out == "unknown command: foo\n"


def test_bang_without_command(capsys):
    WatchShell().handle("!")
    assert capsys.readouterr().out == "no command provided\n"


def test_bang_with_missing_program(capsys):
    WatchShell().handle("!definitely-not-a-real-program-xyz --flag")
    out = capsys.readouterr().out
    assert out.startswith(
        "failed to execute command `definitely-not-a-real-program-xyz --flag`: "
    )


def test_bang_runs_program(tmp_path, capsys):
    marker = tmp_path / "made"
    WatchShell().handle(f"!{sys.executable} -c open({str(marker)!r},'w').close()")
    assert marker.exists()
    assert "failed to execute" not in capsys.readouterr().out


def test_start_reads_commands_until_end_of_input(capsys):
    shell = WatchShell(hint="stream hint")
    thread = shell.start(io.StringIO("hint\nquit\n"))
    thread.join(timeout=5)
    assert not thread.is_alive()
    out = capsys.readouterr().out
    assert out.startswith("Welcome to watch mode!")
    assert "stream hint\n" in out
    assert out.endswith("Bye!\n")
    assert shell.should_quit.is_set()


def test_watch_with_no_exercises_finishes(tmp_path, monkeypatch):
    (tmp_path / "exercises").mkdir()
    monkeypatch.chdir(tmp_path)
    assert watch([], False, False) is WatchStatus.FINISHED