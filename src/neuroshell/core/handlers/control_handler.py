# src/neuroshell/core/handlers/control_handler.py
import logging
from typing import Dict

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_str
from neuroshell.core.parser import parse_command_line
from neuroshell.core.services.stack_service import StackService
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue

logger = logging.getLogger(__name__)

TRUTHY = ("true", "1", "yes", "on", "enabled")
FALSY = ("false", "0", "no", "off", "disabled")


def is_truthy(value: str) -> bool:
    """
    Condition rules shared by the control commands (case-insensitive):
    "true", "1", "yes", "on", "enabled" are true; "false", "0", "no", "off",
    "disabled" and the empty string are false; any other text is true.
    """
    value = value.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    return value != ""


def _require_condition(args: Dict[str, ArgValue], usage: str) -> str:
    if "condition" not in args:
        raise CommandError(f"condition is required\n\n{usage}")
    return arg_str(args, "condition")


def _require_command(input_text: str, usage: str) -> str:
    command = input_text.strip()
    if not command:
        raise CommandError(f"a command to run is required\n\n{usage}")
    return command


class IfCommand(Command):
    """Schedules its input as a command when the condition is true."""
    name = "if"
    description = "Run a command only when a condition is true."
    usage = "Usage:\n  \\if[condition=${flag}] \\command ..."

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        condition = _require_condition(args, self.usage)
        command = _require_command(input_text, self.usage)

        result = is_truthy(condition)
        services.require(VariableService).set_system_variable("#if_result", str(result).lower())
        if not result:
            logger.debug("if: condition '%s' is false, skipping", condition)
            return
        services.require(StackService).push_command(command)


class IfNotCommand(Command):
    """
    The inverse of \\if: schedules its input when the condition is false.
    `#if_not_result` holds the evaluated condition, not its inverse.
    """
    name = "if-not"
    description = "Run a command only when a condition is false."
    usage = "Usage:\n  \\if-not[condition=${#active_model_name}] \\model-new[...] default"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        condition = _require_condition(args, self.usage)
        command = _require_command(input_text, self.usage)

        result = is_truthy(condition)
        services.require(VariableService).set_system_variable("#if_not_result", str(result).lower())
        if result:
            logger.debug("if-not: condition '%s' is true, skipping", condition)
            return
        services.require(StackService).push_command(command)


class WhileCommand(Command):
    """
    Runs its input repeatedly while the condition is true.

    Each pass schedules the body and then this same \\while entry again, both
    as written before interpolation, so the condition and the body see the
    variables as they are at the start of every pass. The per-line
    `execution.max_entries` limit stops a loop that never ends.
    """
    name = "while"
    description = "Repeat a command while a condition stays true."
    usage = "Usage:\n  \\while[condition=${more}] \\command ..."

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        condition = _require_condition(args, self.usage)
        _require_command(input_text, self.usage)

        result = is_truthy(condition)
        services.require(VariableService).set_system_variable("#while_result", str(result).lower())
        if not result:
            return

        stack = services.require(StackService)
        current = stack.current_command()
        if current is None:
            raise CommandError("\\while can only run through the shell's execution engine")

        raw = parse_command_line(current.command)
        if raw.name != self.name:
            raise CommandError(f"\\while cannot loop over a macro line: {current.command}")
        # Body runs first, then the loop checks its condition again
        stack.push_command(current.command)
        stack.push_command(raw.input)
