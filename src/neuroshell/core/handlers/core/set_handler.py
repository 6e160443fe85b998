# src/neuroshell/core/handlers/core/set_handler.py
import logging
from typing import Dict

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_str
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue

logger = logging.getLogger(__name__)

SET_USAGE = """
Usage:
  \\set[name=value, other=value]   Set one or more variables.
  \\set name value                 Set a single variable.
""".strip()

UNSET_USAGE = """
Usage:
  \\unset name                     Remove a variable.
""".strip()


class SetCommand(Command):
    name = "set"
    description = "Set user variables."
    usage = SET_USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        variables = services.require(VariableService)

        if args:
            for key in args:
                variables.set(key, arg_str(args, key))
                logger.debug("set %s", key)
            return

        name, _, value = input_text.strip().partition(" ")
        if not name:
            raise CommandError(f"variable name is required\n\n{SET_USAGE}")
        if "=" in name and not value:
            # \set name=value
            name, _, value = name.partition("=")
        variables.set(name, value.strip())


class UnsetCommand(Command):
    name = "unset"
    description = "Remove a variable."
    usage = UNSET_USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        name = arg_str(args, "name") or input_text.strip()
        if not name:
            raise CommandError(f"variable name is required\n\n{UNSET_USAGE}")
        if not services.require(VariableService).unset(name):
            raise CommandError(f"variable '{name}' is not set")
