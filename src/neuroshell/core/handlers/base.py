# src/neuroshell/core/handlers/base.py
import abc
from typing import TYPE_CHECKING, Dict

from neuroshell.model import ArgValue, ParseMode

if TYPE_CHECKING:
    from neuroshell.core.service_registry import ServiceRegistry


class Command(metaclass=abc.ABCMeta):
    """
    Abstract base class for all shell commands.

    Subclasses declare `name` and, when their argument text must not be
    split into options, `parse_mode = ParseMode.RAW`. Handler modules are
    discovered by their `*_handler.py` file name.
    """
    name: str = ""
    parse_mode: ParseMode = ParseMode.KEY_VALUE
    description: str = ""
    usage: str = ""

    @abc.abstractmethod
    def execute(self, args: Dict[str, ArgValue], input_text: str, services: "ServiceRegistry") -> None:
        """
        Runs the command.

        Args:
            args: Interpolated options from the `[...]` bracket.
            input_text: Interpolated positional text after the name/bracket.
            services: The service registry, for reaching variables, the stack, etc.

        Raises:
            Any exception to signal failure. The engine never wraps it.
        """
        raise NotImplementedError("Every command must implement an 'execute' method.")

    def help_text(self) -> str:
        lines = [f"\\{self.name} - {self.description}" if self.description else f"\\{self.name}"]
        if self.usage:
            lines.append(self.usage.strip("\n"))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<Command {self.name} mode={self.parse_mode.value}>"


def arg_str(args: Dict[str, ArgValue], key: str, default: str = "") -> str:
    """Returns an option as a string; list values are joined with commas."""
    value = args.get(key, default)
    if isinstance(value, list):
        return ",".join(value)
    return value


def arg_bool(args: Dict[str, ArgValue], key: str, default: bool = False) -> bool:
    if key not in args:
        return default
    return arg_str(args, key).strip().lower() in ("1", "true", "yes", "on")
