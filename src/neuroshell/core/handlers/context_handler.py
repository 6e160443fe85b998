# src/neuroshell/core/handlers/context_handler.py
import logging
import re
from typing import Dict

from neuroshell.core.context.neuro_context import is_system_name
from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_str
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue

logger = logging.getLogger(__name__)

USAGE = """
Usage:
  \\vars[pattern=regex, type=user|system|all]
    pattern  Only show variables whose name matches the regular expression.
    type     Which namespace to list (default: all).
""".strip()

VAR_TYPES = ("user", "system", "all")


class VarsCommand(Command):
    """Lists variables, optionally filtered by name pattern and namespace."""
    name = "vars"
    description = "List variables."
    usage = USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        var_type = (arg_str(args, "type") or "all").lower()
        if var_type not in VAR_TYPES:
            raise CommandError(f"invalid type '{var_type}', expected one of: {', '.join(VAR_TYPES)}")

        pattern_text = arg_str(args, "pattern") or input_text.strip()
        try:
            pattern = re.compile(pattern_text) if pattern_text else None
        except re.error as e:
            raise CommandError(f"invalid pattern '{pattern_text}': {e}") from e

        variables = services.require(VariableService).get_all_variables()
        shown = {}
        for name in sorted(variables):
            system = is_system_name(name)
            if (var_type == "user" and system) or (var_type == "system" and not system):
                continue
            if pattern and not pattern.search(name):
                continue
            shown[name] = variables[name]

        if not shown:
            print("No variables found.")
            return
        for name, value in shown.items():
            print(f"  {name} = {value}")
