# src/neuroshell/core/handlers/script_handler.py
import logging
from pathlib import Path
from typing import Dict, List

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_str
from neuroshell.core.parser import is_comment, join_continuation_lines
from neuroshell.core.services.stack_service import StackService
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".neuro"


def load_script_lines(path: Path) -> List[str]:
    """Reads a script into logical lines, dropping blanks and `%%` comments."""
    with open(path, "r", encoding="utf-8") as f:
        lines = join_continuation_lines(f.read().splitlines())
    return [line.strip() for line in lines if line.strip() and not is_comment(line)]


class RunCommand(Command):
    """
    Runs a `.neuro` script by pushing its lines onto the stack in reverse,
    so they execute top to bottom once this command returns.
    """
    name = "run"
    description = "Run a .neuro script file."
    usage = "Usage:\n  \\run path/to/script.neuro\n  \\run[file=path]"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        file_name = arg_str(args, "file") or input_text.strip()
        if not file_name:
            raise CommandError(f"script file is required\n\n{self.usage}")

        path = Path(file_name).expanduser()
        if not path.exists() and path.suffix != SCRIPT_SUFFIX:
            path = path.with_name(path.name + SCRIPT_SUFFIX)
        if not path.is_file():
            raise CommandError(f"script file not found: {file_name}")

        try:
            lines = load_script_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            raise CommandError(f"failed to read script {path}: {e}") from e

        services.require(VariableService).set_system_variable("#script_path", str(path))
        services.require(StackService).push_commands(reversed(lines))
        logger.info("Queued %d line(s) from %s", len(lines), path)
