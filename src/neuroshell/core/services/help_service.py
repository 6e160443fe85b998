# src/neuroshell/core/services/help_service.py
from typing import TYPE_CHECKING, List, Optional

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import UnknownCommandError
from neuroshell.core.handlers.base import Command
from neuroshell.core.service_registry import Service

if TYPE_CHECKING:
    from neuroshell.core.command_registry import CommandRegistry

HEADER_HELP_TEXT = """
NeuroShell - Help

Commands start with a backslash: \\name[key=value, ...] input text
Text without a backslash is passed to the default command (\\echo).

  ${name}             Insert a variable; nested references like ${a_${b}} work.
  \\silent \\cmd        Run \\cmd without printing its output.
  \\try \\cmd           Run \\cmd; on failure set ${_status}=1 and ${_error}.
  %% comment          Ignored line.
  line ...            A trailing '...' continues the command on the next line.
""".strip()


class HelpService(Service):
    """Read-only view of the command registry for the help command."""
    service_name = "help"

    def __init__(self, command_registry: "CommandRegistry"):
        self._registry = command_registry

    def initialize(self, ctx: NeuroContext) -> None:
        pass

    def list_commands(self) -> List[Command]:
        return self._registry.get_all()

    def get_command(self, name: str) -> Command:
        command = self._registry.get(name.lstrip("\\"))
        if command is None:
            raise UnknownCommandError(name)
        return command

    def get_help_text(self, name: Optional[str] = None) -> str:
        if name:
            return self.get_command(name).help_text()
        parts = [HEADER_HELP_TEXT, "Commands:"]
        for command in self.list_commands():
            parts.append(f"  \\{command.name:<18}{command.description}")
        return "\n".join(parts)
