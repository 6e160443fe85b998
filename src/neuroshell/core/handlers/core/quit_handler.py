# src/neuroshell/core/handlers/core/quit_handler.py
from typing import Dict

from neuroshell.core.errors import ExitRequested
from neuroshell.core.handlers.base import Command
from neuroshell.model import ArgValue


class ExitCommand(Command):
    name = "exit"
    description = "Leave the shell."
    usage = "Usage:\n  \\exit"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        raise ExitRequested()


class QuitCommand(ExitCommand):
    name = "quit"
