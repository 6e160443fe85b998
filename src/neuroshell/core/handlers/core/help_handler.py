# src/neuroshell/core/handlers/core/help_handler.py
from typing import Dict

from neuroshell.core.handlers.base import Command
from neuroshell.core.services.help_service import HelpService
from neuroshell.model import ArgValue


class HelpCommand(Command):
    name = "help"
    description = "List commands, or show help for one command."
    usage = "Usage:\n  \\help\n  \\help command"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        print(services.require(HelpService).get_help_text(input_text.strip() or None))
