# src/neuroshell/core/handlers/config_handler.py
import json
import logging
from typing import Dict

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command
from neuroshell.core.managers.config_manager import config_manager
from neuroshell.model import ArgValue, ParseMode

logger = logging.getLogger(__name__)

USAGE = """
Usage:
  \\config list                Show the current configuration as JSON.
  \\config get <key>           Show one value (e.g., shell.prompt).
  \\config set <key> <value>   Set a config value for the session (e.g., debug.level INFO).
  \\config reset               Reload the configuration from settings.json.
""".strip()


class ConfigCommand(Command):
    """View and change the session configuration."""
    name = "config"
    parse_mode = ParseMode.RAW
    description = "View or modify the session configuration."
    usage = USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        parts = input_text.split()
        if not parts:
            print(USAGE)
            return

        action = parts[0]

        if action == "list":
            print(json.dumps(config_manager.get_all(), indent=2))
            return

        if action == "get":
            if len(parts) != 2:
                raise CommandError("Usage: \\config get <key>")
            print(json.dumps(config_manager.get_nested(parts[1])))
            return

        if action == "set":
            if len(parts) < 3:
                raise CommandError("Usage: \\config set <key> <value>")
            key_path = parts[1]
            value = input_text.split(None, 2)[2].strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]

            if not config_manager.set_nested(key_path, value):
                raise CommandError(f"failed to set config value for key '{key_path}'")
            new_value = config_manager.get_nested(key_path)
            print(f"Config updated: {key_path} = {new_value} (type: {type(new_value).__name__})")
            return

        if action == "reset":
            config_manager.reset()
            print("Configuration has been reset to the values from settings.json.")
            return

        raise CommandError(f"unknown subcommand: 'config {action}'\n\n{USAGE}")
