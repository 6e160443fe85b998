# src/neuroshell/core/command_registry.py
import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

from neuroshell.core.discovery import discover_commands
from neuroshell.core.errors import DuplicateRegistrationError, InvalidNameError, UnknownCommandError
from neuroshell.core.handlers.base import Command
from neuroshell.model import ArgValue, ParseMode

if TYPE_CHECKING:
    from neuroshell.core.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)


class CommandRegistry:
    """
    Name -> Command map. Registration and lookup are safe to call from
    multiple threads; a name can only ever be registered once.
    """

    def __init__(self):
        self._commands: Dict[str, Command] = {}
        self._lock = threading.RLock()

    def register(self, command: Command) -> None:
        name = command.name
        if not name:
            raise InvalidNameError("command name cannot be empty")
        with self._lock:
            if name in self._commands:
                raise DuplicateRegistrationError(f"command {name} already registered")
            self._commands[name] = command
        logger.debug("Registered command '%s'", name)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._commands.pop(name, None)

    def get(self, name: str) -> Optional[Command]:
        with self._lock:
            return self._commands.get(name)

    def is_valid_command(self, name: str) -> bool:
        with self._lock:
            return name in self._commands

    def get_parse_mode(self, name: str) -> ParseMode:
        """Declared mode of `name`, KeyValue for unknown names."""
        command = self.get(name)
        return command.parse_mode if command else ParseMode.KEY_VALUE

    def execute(
            self,
            name: str,
            args: Dict[str, ArgValue],
            input_text: str,
            services: "ServiceRegistry",
    ) -> None:
        command = self.get(name)
        if command is None:
            raise UnknownCommandError(name)
        command.execute(args, input_text, services)

    def get_all(self) -> List[Command]:
        with self._lock:
            return [self._commands[name] for name in sorted(self._commands)]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._commands)

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)


def register_all_commands(registry: CommandRegistry) -> int:
    """Registers every discovered builtin that the registry does not know yet."""
    logger.debug("Discovering all command handlers...")
    count = 0
    for name, command_cls in discover_commands().items():
        if registry.is_valid_command(name):
            continue
        registry.register(command_cls())
        count += 1
    logger.debug("Successfully registered %d commands.", count)
    return count


# --- Process-wide default registry ---

_global_registry: Optional[CommandRegistry] = None
_global_lock = threading.Lock()


def get_global_command_registry() -> CommandRegistry:
    global _global_registry
    with _global_lock:
        if _global_registry is None:
            _global_registry = CommandRegistry()
        return _global_registry


def set_global_command_registry(registry: Optional[CommandRegistry]) -> Optional[CommandRegistry]:
    """Swaps the default registry and returns the previous one."""
    global _global_registry
    with _global_lock:
        previous = _global_registry
        _global_registry = registry
        return previous
