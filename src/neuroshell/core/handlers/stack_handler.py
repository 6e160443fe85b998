# src/neuroshell/core/handlers/stack_handler.py
from typing import Dict

from neuroshell.core.handlers.base import Command, arg_bool
from neuroshell.core.services.stack_service import StackService
from neuroshell.model import ArgValue


class ShowStackCommand(Command):
    """Prints the pending command entries, next-to-run first."""
    name = "show-stack"
    description = "Show pending commands on the execution stack."
    usage = "Usage:\n  \\show-stack[detailed=true]"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        entries = services.require(StackService).peek_stack()
        if not entries:
            print("Execution stack is empty.")
            return

        print(f"Execution stack ({len(entries)} pending, top first):")
        detailed = arg_bool(args, "detailed")
        for position, entry in enumerate(entries, start=1):
            print(f"  {position}. {entry.render()}")
            if detailed:
                print(f"     silent={entry.silent} try={entry.try_}")

