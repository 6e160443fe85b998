# src/neuroshell/core/context/neuro_context.py
import getpass
import logging
import os
import platform
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from neuroshell.core.context.command_stack import CommandStack
from neuroshell.core.context.variable_store import VariableStore
from neuroshell.core.errors import VariableError, VariableNotFoundError
from neuroshell.model import PendingCommand

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "_"
METADATA_PREFIX = "#"
COMPUTED_PREFIX = "@"
SYSTEM_PREFIXES = (OUTPUT_PREFIX, METADATA_PREFIX, COMPUTED_PREFIX)

DEFAULT_ALLOWED_GLOBALS = ("_style", "_echo_command", "_default_command")
TEST_SESSION_ID = "test-session"


def is_system_name(name: str) -> bool:
    return name.startswith(SYSTEM_PREFIXES)


class NeuroContext:
    """
    Session state shared by every command: the variable store, the pending
    command stack and a few session facts. All access goes through this
    object so the namespace rules are enforced in one place.
    """

    def __init__(self, test_mode: bool = False, allowed_globals: Optional[Iterable[str]] = None):
        self.variables = VariableStore()
        self.stack = CommandStack()
        self.test_mode = test_mode
        self.session_id = TEST_SESSION_ID if test_mode else uuid.uuid4().hex
        self.allowed_globals = frozenset(
            allowed_globals if allowed_globals is not None else DEFAULT_ALLOWED_GLOBALS
        )
        # Entry the engine is running right now, before interpolation
        self.current_command: Optional[PendingCommand] = None

    # --- Variables ---

    def _computed(self, name: str) -> Optional[str]:
        now = datetime.now()
        if name == "@pwd":
            return os.getcwd()
        if name == "@user":
            try:
                return getpass.getuser()
            except (KeyError, OSError):
                return os.environ.get("USER", "")
        if name == "@home":
            return str(Path.home())
        if name == "@date":
            return now.strftime("%Y-%m-%d")
        if name == "@time":
            return now.strftime("%H:%M:%S")
        if name == "@os":
            return f"{platform.system().lower()}/{platform.machine().lower()}"
        if name == "#session_id":
            return self.session_id
        if name == "#test_mode":
            return "true" if self.test_mode else "false"
        return None

    def lookup_variable(self, name: str) -> Optional[str]:
        """Returns the value or None; used by interpolation where missing means empty."""
        computed = self._computed(name)
        if computed is not None:
            return computed
        return self.variables.get(name)

    def get_variable(self, name: str) -> str:
        value = self.lookup_variable(name)
        if value is None:
            raise VariableNotFoundError(name)
        return value

    def validate_user_name(self, name: str) -> None:
        if not name:
            raise VariableError("variable name cannot be empty")
        if any(ch.isspace() for ch in name):
            raise VariableError("variable name cannot contain whitespace")
        if name.startswith((METADATA_PREFIX, COMPUTED_PREFIX)):
            raise VariableError("variable name cannot start with system prefixes @ or #")
        if name.startswith(OUTPUT_PREFIX) and name not in self.allowed_globals:
            raise VariableError(f"variable name cannot start with _ unless whitelisted: {name}")

    def set_variable(self, name: str, value: str) -> None:
        """Sets a user variable; `_` names are accepted only if whitelisted."""
        self.validate_user_name(name)
        self.variables.set(name, str(value))

    def set_system_variable(self, name: str, value: str) -> None:
        """Sets a `_` output or `#` metadata variable. `@` variables are computed and read-only."""
        if not name.startswith((OUTPUT_PREFIX, METADATA_PREFIX)):
            raise VariableError(
                f"set_system_variable can only set variables prefixed with _ or #, got: {name}"
            )
        self.variables.set(name, str(value))

    def replace_system_variables(self, prefix: str, values: Dict[str, str]) -> None:
        """Drops every variable under `prefix`, then sets `values` (full names)."""
        if not prefix.startswith((OUTPUT_PREFIX, METADATA_PREFIX)):
            raise VariableError(f"not a system variable prefix: {prefix}")
        self.variables.delete_prefix(prefix)
        for name, value in values.items():
            self.set_system_variable(name, value)

    def unset_variable(self, name: str) -> bool:
        if name.startswith(COMPUTED_PREFIX):
            raise VariableError(f"cannot unset computed variable: {name}")
        return self.variables.delete(name)

    def get_all_variables(self) -> Dict[str, str]:
        """Stored variables plus the current values of the computed ones."""
        merged = self.variables.snapshot()
        for name in ("@pwd", "@user", "@home", "@date", "@time", "@os", "#session_id", "#test_mode"):
            merged[name] = self._computed(name) or ""
        return merged

    # --- Active entity metadata ---

    @staticmethod
    def _active_prefix(kind: str) -> str:
        return f"{METADATA_PREFIX}active_{kind}_"

    def set_active_entity(self, kind: str, facts: Dict[str, str]) -> None:
        """
        Replaces every `#active_<kind>_*` variable with `facts`, so stale
        facts of a previously active entity never survive.
        """
        prefix = self._active_prefix(kind)
        self.variables.delete_prefix(prefix)
        for key, value in facts.items():
            self.variables.set(prefix + key, "" if value is None else str(value))
        logger.debug("Active %s set: %s", kind, facts.get("id"))

    def get_active_entity_id(self, kind: str) -> Optional[str]:
        return self.variables.get(self._active_prefix(kind) + "id")

    def clear_active_entity(self, kind: str) -> int:
        return self.variables.delete_prefix(self._active_prefix(kind))

    # --- Stack ---

    def push_command(self, command: str) -> PendingCommand:
        return self.stack.push_command(command)

    def pop_command(self) -> Optional[PendingCommand]:
        return self.stack.pop()

    def peek_stack(self) -> List[PendingCommand]:
        return self.stack.peek_stack()

    def clear_stack(self) -> int:
        return self.stack.clear()

    def stack_depth(self) -> int:
        return len(self.stack)

    def discard_stack_to(self, depth: int) -> int:
        return self.stack.truncate(depth)

    # --- Session ---

    def set_test_mode(self, enabled: bool) -> None:
        self.test_mode = enabled
        if enabled:
            self.session_id = TEST_SESSION_ID

    def reset(self) -> None:
        self.variables.clear()
        self.stack.clear()

    def __repr__(self) -> str:
        return (
            f"<NeuroContext session={self.session_id[:8]} vars_count={len(self.variables)} "
            f"pending={len(self.stack)} test_mode={self.test_mode}>"
        )


# --- Process-wide default context ---

_global_context: Optional[NeuroContext] = None
_global_lock = threading.Lock()


def get_global_context() -> NeuroContext:
    global _global_context
    with _global_lock:
        if _global_context is None:
            _global_context = NeuroContext()
        return _global_context


def set_global_context(ctx: Optional[NeuroContext]) -> Optional[NeuroContext]:
    """Installs `ctx` as the default context and returns the previous one."""
    global _global_context
    with _global_lock:
        previous = _global_context
        _global_context = ctx
        return previous


def reset_global_context() -> None:
    global _global_context
    with _global_lock:
        _global_context = None


@contextmanager
def use_context(ctx: NeuroContext) -> Iterator[NeuroContext]:
    """Swaps the default context for the duration of the block."""
    previous = set_global_context(ctx)
    try:
        yield ctx
    finally:
        set_global_context(previous)
