# src/neuroshell/core/context/command_stack.py
import logging
import threading
from typing import Iterable, List, Optional

from neuroshell.core.parser import strip_modifiers
from neuroshell.model import PendingCommand

logger = logging.getLogger(__name__)


class CommandStack:
    """
    LIFO list of pending command entries. Modifier prefixes are captured as
    flags when an entry is pushed, so the entry text itself is always a bare
    command.
    """

    def __init__(self):
        self._entries: List[PendingCommand] = []
        self._lock = threading.Lock()

    def push_command(self, command: str) -> PendingCommand:
        text, silent, try_ = strip_modifiers(command)
        return self.push_entry(PendingCommand(command=text, silent=silent, try_=try_))

    def push_commands(self, commands: Iterable[str]) -> None:
        """Pushes in the given order, so the last one runs first."""
        for command in commands:
            self.push_command(command)

    def push_entry(self, entry: PendingCommand) -> PendingCommand:
        with self._lock:
            self._entries.append(entry)
        logger.debug("Pushed '%s' (depth %d)", entry.render(), len(self._entries))
        return entry

    def pop(self) -> Optional[PendingCommand]:
        with self._lock:
            return self._entries.pop() if self._entries else None

    def peek(self) -> Optional[PendingCommand]:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def peek_stack(self) -> List[PendingCommand]:
        """All pending entries, next-to-run first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.debug("Discarded %d pending command(s).", count)
        return count

    def truncate(self, depth: int) -> int:
        """Drops every entry above `depth` and returns how many were dropped."""
        with self._lock:
            dropped = max(0, len(self._entries) - depth)
            if dropped:
                del self._entries[-dropped:]
        return dropped

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
