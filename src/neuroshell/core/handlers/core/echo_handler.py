# src/neuroshell/core/handlers/core/echo_handler.py
from typing import Dict

from neuroshell.core.handlers.base import Command, arg_bool, arg_str
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue

USAGE = """
Usage:
  \\echo[to=var, silent=true, raw=true] text
    to      Variable that receives the text (default: _output).
    silent  Store the text without printing it.
    raw     Do not interpret \\n and \\t escape sequences.
""".strip()

_ESCAPES = {"\\n": "\n", "\\t": "\t"}


def interpret_escapes(text: str) -> str:
    for escaped, char in _ESCAPES.items():
        text = text.replace(escaped, char)
    return text


class EchoCommand(Command):
    """
    Prints its input and stores it in `_output`.

    This is also the default command: plain text typed without a leading
    backslash ends up here.
    """
    name = "echo"
    description = "Print text and store it in a variable."
    usage = USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        text = input_text if arg_bool(args, "raw") else interpret_escapes(input_text)
        target = arg_str(args, "to") or "_output"

        services.require(VariableService).store(target, text)
        if not arg_bool(args, "silent"):
            print(text)
