# src/neuroshell/app.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory

from neuroshell.core.core import NeuroShell, get_default_shell
from neuroshell.core.errors import ExitRequested, NeuroShellError
from neuroshell.core.managers.completion_manager import CompletionManager
from neuroshell.core.managers.config_manager import config_manager
from neuroshell.core.parser import join_continuation_lines, needs_continuation
from neuroshell.core.utils.configure_logging import configure_logger
from neuroshell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class PromptToolkitCompleter(Completer):
    """
    A wrapper that uses the CompletionManager to generate suggestions
    in a way that prompt_toolkit expects.
    """

    def __init__(self, manager: CompletionManager):
        self.manager = manager

    def get_completions(self, document: Document, complete_event):
        yield from self.manager.generate_completions(document)


def run_line(shell: NeuroShell, line: str) -> int:
    """
    Executes one logical line and reports errors the way the REPL shows them.
    Returns 0 on success and 1 on error; ExitRequested propagates.
    """
    try:
        shell.execute(line)
        return 0
    except NeuroShellError as e:
        print(f"Error: {e}")
        logger.debug("Command failed: %s", line, exc_info=True)
        return 1
    except ExitRequested:
        raise
    except Exception as e:
        logger.error("Unexpected error while running '%s': %s", line, e, exc_info=True)
        print(f"Error: {e}")
        return 1


# --- Shell Application ---


def start_shell(shell: NeuroShell) -> None:
    """Starts the interactive REPL (Read-Eval-Print Loop)."""
    print("Welcome to NeuroShell (type \\help for commands)")

    history_path = PathUtils.get_shell_history_file(
        config_manager.get_nested("shell.history_file", ".neuroshell_history")
    )
    history = FileHistory(str(history_path))
    completion_manager = CompletionManager(shell.context, shell.commands, history)

    session = PromptSession(
        history=history,
        completer=PromptToolkitCompleter(completion_manager),
        complete_while_typing=True,
    )
    logger.info("Shell startup; history file at: %s", history_path)

    prompt = config_manager.get_nested("shell.prompt", "neuro> ")
    continuation_prompt = config_manager.get_nested("shell.continuation_prompt", "...> ")
    pending: List[str] = []

    try:
        while True:
            try:
                line = session.prompt(continuation_prompt if pending else prompt)
            except (EOFError, KeyboardInterrupt):
                break

            if needs_continuation(line):
                pending.append(line)
                continue
            if pending:
                line = join_continuation_lines(pending + [line])[0]
                pending = []

            if not line.strip():
                continue
            try:
                run_line(shell, line)
            except ExitRequested:
                break
    finally:
        print("Bye!")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neuroshell",
        description="Interactive command shell for orchestrating LLM sessions.",
    )
    parser.add_argument("script", nargs="?", help="Run a .neuro script and exit.")
    parser.add_argument("-c", "--command", help="Run a single command line and exit.")
    parser.add_argument("--test-mode", action="store_true", help="Deterministic session values for testing.")
    parser.add_argument("--log-level", help="Override debug.level from settings.json (e.g. DEBUG).")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for running the shell from the command line."""
    args = build_arg_parser().parse_args(argv)
    configure_logger(args.log_level or config_manager.get_nested("debug.level", "WARNING"))

    try:
        shell = get_default_shell()
    except NeuroShellError as e:
        logger.error("Failed to start shell: %s", e, exc_info=True)
        print(f"\nFATAL: {e}")
        return 1
    if args.test_mode:
        shell.context.set_test_mode(True)

    try:
        if args.command:
            return run_line(shell, args.command)
        if args.script:
            return run_line(shell, f"\\run {args.script}")
    except ExitRequested:
        return 0

    start_shell(shell)
    return 0


if __name__ == "__main__":
    sys.exit(main())
