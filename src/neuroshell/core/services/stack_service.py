# src/neuroshell/core/services/stack_service.py
from typing import Iterable, List, Optional

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import ServiceUnavailableError
from neuroshell.core.service_registry import Service
from neuroshell.model import PendingCommand


class StackService(Service):
    """Lets commands schedule follow-up commands on the session stack."""
    service_name = "stack"

    def __init__(self):
        self._ctx: Optional[NeuroContext] = None

    def initialize(self, ctx: NeuroContext) -> None:
        self._ctx = ctx

    def _require_context(self) -> NeuroContext:
        if self._ctx is None:
            raise ServiceUnavailableError("stack service not initialized")
        return self._ctx

    def push_command(self, command: str) -> PendingCommand:
        """Schedules `command`; it runs after the current command returns."""
        return self._require_context().push_command(command)

    def push_commands(self, commands: Iterable[str]) -> None:
        """Pushes in order, so the last command in `commands` runs first."""
        self._require_context().stack.push_commands(commands)

    def current_command(self) -> Optional[PendingCommand]:
        """The entry being executed right now, as it was before interpolation."""
        return self._require_context().current_command

    def peek_stack(self) -> List[PendingCommand]:
        return self._require_context().peek_stack()

