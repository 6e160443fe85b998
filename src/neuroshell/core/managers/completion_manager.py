# src/neuroshell/core/managers/completion_manager.py
import logging
import re
from typing import Iterable, Optional

from prompt_toolkit.completion import Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import History

from neuroshell.core.command_registry import CommandRegistry
from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

# An open `${` reference right before the cursor
OPEN_VARIABLE_PATTERN = re.compile(r"\$\{([^${}\s]*)$")
# A command name being typed right before the cursor, after optional modifiers
COMMAND_WORD_PATTERN = re.compile(r"^(?:\\(?:silent|try)\s+)*\\([a-zA-Z0-9_-]*)$")


class CompletionManager:
    """
    Generates completion suggestions for the prompt: command names after a
    backslash, and variable names inside `${`.
    """

    def __init__(
        self,
        context: NeuroContext,
        command_registry: CommandRegistry,
        history: Optional[History] = None,
    ):
        self.ctx = context
        self.commands = command_registry
        self.history = history

    def generate_completions(self, document: Document) -> Iterable[Completion]:
        text_before_cursor = document.text_before_cursor

        var_match = OPEN_VARIABLE_PATTERN.search(text_before_cursor)
        if var_match:
            yield from self._get_variable_completions(var_match.group(1))
            return

        command_match = COMMAND_WORD_PATTERN.match(text_before_cursor.lstrip())
        if command_match:
            yield from self._get_command_completions(command_match.group(1))
            return

        if text_before_cursor.endswith("!h"):
            yield from self._get_history_completions()

    # --- Helper methods for different completion types ---

    def _get_command_completions(self, partial: str) -> Iterable[Completion]:
        start_pos = -len(partial)
        for command in self.commands.get_all():
            if command.name.startswith(partial):
                yield Completion(
                    command.name,
                    start_position=start_pos,
                    display_meta=command.description or "Command",
                )

    def _get_variable_completions(self, partial: str) -> Iterable[Completion]:
        max_items = config_manager.get_nested("autocomplete.max_variables", 50)
        start_pos = -len(partial)
        count = 0
        for name in sorted(self.ctx.get_all_variables()):
            if not name.startswith(partial):
                continue
            yield Completion(name + "}", start_position=start_pos, display=name, display_meta="Variable")
            count += 1
            if count >= max_items:
                break

    def _get_history_completions(self) -> Iterable[Completion]:
        """Yields the most recent distinct history entries for the `!h` trigger."""
        if self.history is None:
            return
        max_len = config_manager.get_nested("autocomplete.h_max_len", 5)
        logger.debug("History completion (!h) triggered. Max items: %s", max_len)
        recent, seen = [], set()
        for command in reversed(list(self.history.get_strings())):
            stripped = command.strip()
            if stripped and stripped != "!h" and stripped not in seen:
                seen.add(stripped)
                recent.append(stripped)
                if len(recent) >= max_len:
                    break
        for command in recent:
            yield Completion(command, start_position=-2, display_meta="Command History")
