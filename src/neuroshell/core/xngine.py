# src/neuroshell/core/xngine.py
from __future__ import annotations

import io
import logging
from contextlib import ExitStack, redirect_stdout
from typing import List, Optional

from neuroshell.core.command_registry import CommandRegistry
from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import (
    ExecutionLimitError,
    ExitRequested,
    NeuroShellError,
    ParseError,
    UnknownCommandError,
)
from neuroshell.core.handlers.base import Command
from neuroshell.core.interpolation import DEFAULT_MAX_ITERATIONS, Interpolator, is_macro_line
from neuroshell.core.managers.config_manager import config_manager
from neuroshell.core.parser import DEFAULT_COMMAND, is_comment, parse_command_line, strip_modifiers
from neuroshell.core.service_registry import ServiceRegistry
from neuroshell.model import ParsedCommand, PendingCommand

TRUTHY = ("1", "true", "yes", "on")
DEFAULT_MAX_ENTRIES = 10000

TRY = "try"
SILENT = "silent"


class _Boundary:
    """
    A \\try or \\silent region: the entry that opened it and everything it
    pushed. It is open while the stack is deeper than `depth`.
    """

    def __init__(self, kind: str, depth: int):
        self.kind = kind
        self.depth = depth
        self._exit_stack = ExitStack()
        if kind == SILENT:
            self._exit_stack.enter_context(redirect_stdout(io.StringIO()))

    def close(self) -> None:
        self._exit_stack.close()


class ExecuteEngine:
    """
    Runs command lines: parse, resolve, interpolate, dispatch, and then drain
    whatever the commands pushed onto the context's stack.

    Every entry shares one LIFO stack, so a command pushed while a pushed
    command runs is finished before control returns (depth first).
    """

    def __init__(
            self,
            *,
            command_registry: CommandRegistry,
            service_registry: ServiceRegistry,
            context: NeuroContext,
            interpolator: Optional[Interpolator] = None,
            logger: Optional[logging.Logger] = None,
    ) -> None:
        self._commands = command_registry
        self._services = service_registry
        self._context = context
        self._interpolator = interpolator or Interpolator(
            context.lookup_variable,
            max_iterations=config_manager.get_nested("interpolation.max_iterations", DEFAULT_MAX_ITERATIONS),
        )
        self._log = logger or logging.getLogger(__name__)
        self._boundaries: List[_Boundary] = []

    @property
    def context(self) -> NeuroContext:
        return self._context

    def use_interpolator(self, interpolator: Interpolator) -> None:
        self._interpolator = interpolator

    # --- Parsing ---

    def default_command(self) -> str:
        return (
            self._context.lookup_variable("_default_command")
            or config_manager.get_nested("shell.default_command", DEFAULT_COMMAND)
        )

    def parse(self, text: str) -> ParsedCommand:
        """
        Parses a bare command (modifiers already stripped). A line that starts
        with a `${...}` reference is expanded as a whole first, so a variable
        can hold the command itself.
        """
        if is_macro_line(text):
            expanded = self._interpolator.expand(text)
            self._log.debug("Macro line '%s' expanded to '%s'", text, expanded)
            text = expanded
        return parse_command_line(
            text,
            parse_mode_lookup=self._commands.get_parse_mode,
            default_command=self.default_command(),
        )

    def _resolve(self, name: str) -> Command:
        command = self._commands.get(name)
        if command is None:
            raise UnknownCommandError(name)
        return command

    # --- Execution ---

    def execute(self, line: str) -> None:
        """
        Runs one logical input line and drains the stack afterwards.

        Raises:
            ParseError / UnknownCommandError: the line was rejected; nothing ran.
            ExitRequested: a command asked the shell to stop.
            ExecutionLimitError: the line ran more entries than `execution.max_entries`.
            Any handler exception not caught by `\\try`, unchanged.
        """
        text = line.strip()
        if not text or is_comment(text):
            return
        command_text, silent, try_ = strip_modifiers(text)
        if not command_text:
            if try_:
                self._empty_try()
                return
            raise ParseError("modifier without a command", len(text))

        entry = PendingCommand(command=command_text, silent=silent, try_=try_)
        parsed = self.parse(entry.command)
        self._run_entry(entry, parsed)
        self.drain()

    def drain(self) -> int:
        """Pops and runs pending entries until the stack is empty. Returns how many ran."""
        limit = config_manager.get_nested("execution.max_entries", DEFAULT_MAX_ENTRIES)
        count = 0
        while True:
            entry = self._context.pop_command()
            if entry is None:
                self._close_finished_boundaries()
                return count
            count += 1
            if count > limit:
                self._abort()
                raise ExecutionLimitError(f"execution stopped after {limit} pending commands")
            if not entry.command.strip() or is_comment(entry.command):
                if entry.try_ and not entry.command.strip():
                    self._empty_try()
                self._close_finished_boundaries()
                continue
            self._run_entry(entry)

    def _run_entry(self, entry: PendingCommand, parsed: Optional[ParsedCommand] = None) -> None:
        try:
            if parsed is None:
                parsed = self.parse(entry.command)
            self._resolve(parsed.name)
            parsed = self._interpolator.expand_command(parsed)
        except NeuroShellError:
            # Parse and dispatch errors abort the whole chain, even under \try
            self._abort()
            raise

        # Boundaries cover this entry and everything it pushes
        depth = self._context.stack_depth()
        if entry.try_:
            self._boundaries.append(_Boundary(TRY, depth))
        if entry.silent:
            self._boundaries.append(_Boundary(SILENT, depth))

        self._echo(entry)
        self._log.debug("Executing \\%s args=%s input=%r", parsed.name, parsed.args, parsed.input)
        self._context.current_command = entry
        try:
            self._commands.execute(parsed.name, parsed.args, parsed.input, self._services)
        except ExitRequested:
            self._abort()
            raise
        except Exception as exc:
            if not self._recover(parsed.name, exc):
                self._abort()
                raise
        finally:
            self._context.current_command = None
        self._close_finished_boundaries()

    # --- Boundaries ---

    def _innermost_try(self) -> Optional[int]:
        for index in range(len(self._boundaries) - 1, -1, -1):
            if self._boundaries[index].kind == TRY:
                return index
        return None

    def _recover(self, name: str, exc: Exception) -> bool:
        """
        Ends the innermost \\try block after a handler failure: its pending
        entries are discarded and `_status`/`_error` report the error.
        Returns False when no \\try block is open.
        """
        index = self._innermost_try()
        if index is None:
            return False
        dropped = self._context.discard_stack_to(self._boundaries[index].depth)
        self._close_boundaries(index)
        self._log.info("\\try caught error in \\%s: %s", name, exc)
        if dropped:
            self._log.debug("Skipped %d pending command(s) of the failed \\try block.", dropped)
        self._set_status("1", str(exc))
        return True

    def _close_finished_boundaries(self) -> None:
        depth = self._context.stack_depth()
        while self._boundaries and depth <= self._boundaries[-1].depth:
            boundary = self._boundaries.pop()
            boundary.close()
            if boundary.kind == TRY:
                self._set_status("0", "")

    def _close_boundaries(self, index: int = 0) -> None:
        while len(self._boundaries) > index:
            self._boundaries.pop().close()

    def _abort(self) -> None:
        self._close_boundaries()
        dropped = self._context.clear_stack()
        if dropped:
            self._log.debug("Aborted; %d pending command(s) dropped.", dropped)

    def _set_status(self, status: str, error: str) -> None:
        self._context.set_system_variable("_status", status)
        self._context.set_system_variable("_error", error)

    def _empty_try(self) -> None:
        self._set_status("0", "")
        self._context.set_system_variable("_output", "")

    def _echo(self, entry: PendingCommand) -> None:
        if entry.silent:
            return
        flag = self._context.lookup_variable("_echo_command")
        enabled = (
            flag.strip().lower() in TRUTHY if flag is not None
            else bool(config_manager.get_nested("shell.echo_commands", False))
        )
        if enabled:
            print(f"> {entry.command}")
