# src/neuroshell/core/handlers/core/get_handler.py
from typing import Dict

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_str
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue


class GetCommand(Command):
    """Prints a variable's value and copies it into `_output`."""
    name = "get"
    description = "Show the value of a variable."
    usage = "Usage:\n  \\get name\n  \\get[var=name]"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        name = arg_str(args, "var") or input_text.strip()
        if not name:
            raise CommandError(f"variable name is required\n\n{self.usage}")

        variables = services.require(VariableService)
        value = variables.get(name)
        variables.set_system_variable("_output", value)
        print(f"{name} = {value}")
