# tests/core/test_completion_and_app.py
import pytest
from prompt_toolkit.document import Document
from prompt_toolkit.history import InMemoryHistory

from neuroshell.app import build_arg_parser, main, run_line
from neuroshell.core.core import NeuroShell, get_default_shell, set_default_shell
from neuroshell.core.errors import ExitRequested
from neuroshell.core.managers.completion_manager import CompletionManager


@pytest.fixture
def shell():
    return NeuroShell.for_testing()


def complete(manager, text):
    return list(manager.generate_completions(Document(text)))


def test_command_completion(shell):
    manager = CompletionManager(shell.context, shell.commands)
    names = [c.text for c in complete(manager, r"\model-")]
    assert "model-new" in names
    assert "echo" not in names


def test_command_completion_after_modifiers(shell):
    manager = CompletionManager(shell.context, shell.commands)
    names = [c.text for c in complete(manager, r"\silent \try \ec")]
    assert names == ["echo"]


def test_variable_completion_closes_brace(shell):
    shell.context.set_variable("movie", "x")
    manager = CompletionManager(shell.context, shell.commands)
    completions = complete(manager, r"\echo ${mo")
    assert [c.text for c in completions] == ["movie}"]
    assert completions[0].start_position == -2


def test_history_completion(shell):
    history = InMemoryHistory()
    for line in [r"\echo one", r"\echo two", r"\echo one"]:
        history.append_string(line)
    manager = CompletionManager(shell.context, shell.commands, history)
    assert [c.text for c in complete(manager, "!h")] == [r"\echo one", r"\echo two"]


def test_run_line_reports_errors(shell, capsys):
    assert run_line(shell, r"\echo fine") == 0
    assert run_line(shell, r"\nosuch") == 1
    assert "Error: unknown command: nosuch" in capsys.readouterr().out


def test_run_line_lets_exit_through(shell):
    with pytest.raises(ExitRequested):
        run_line(shell, r"\quit")


def test_arg_parser():
    args = build_arg_parser().parse_args(["-c", r"\echo hi", "--test-mode"])
    assert args.command == r"\echo hi"
    assert args.test_mode
    assert args.script is None


def test_default_shell_can_be_swapped(shell):
    previous = set_default_shell(shell)
    try:
        assert get_default_shell() is shell
        assert get_default_shell() is get_default_shell()
    finally:
        set_default_shell(previous)


def test_main_test_mode_gives_fixed_session_id(monkeypatch, capsys):
    monkeypatch.setattr("neuroshell.app.configure_logger", lambda *args, **kwargs: None)
    shell = NeuroShell.create()
    previous = set_default_shell(shell)
    try:
        assert main(["--test-mode", "-c", r"\get #session_id"]) == 0
    finally:
        set_default_shell(previous)
    assert "#session_id = test-session" in capsys.readouterr().out


def test_main_reports_failing_command(monkeypatch, capsys):
    monkeypatch.setattr("neuroshell.app.configure_logger", lambda *args, **kwargs: None)
    previous = set_default_shell(NeuroShell.for_testing())
    try:
        assert main(["-c", r"\nosuch"]) == 1
    finally:
        set_default_shell(previous)
    assert "Error: unknown command: nosuch" in capsys.readouterr().out
