# src/neuroshell/core/services/variable_service.py
import logging
from typing import Dict, Optional

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import ServiceUnavailableError
from neuroshell.core.service_registry import Service

logger = logging.getLogger(__name__)


class VariableService(Service):
    """Command-facing access to the context's variable store."""
    service_name = "variable"

    def __init__(self):
        self._ctx: Optional[NeuroContext] = None

    def initialize(self, ctx: NeuroContext) -> None:
        self._ctx = ctx

    def _require_context(self) -> NeuroContext:
        if self._ctx is None:
            raise ServiceUnavailableError("variable service not initialized")
        return self._ctx

    def get(self, name: str) -> str:
        return self._require_context().get_variable(name)

    def set(self, name: str, value: str) -> None:
        self._require_context().set_variable(name, value)
        logger.debug("Set user variable %s", name)

    def set_system_variable(self, name: str, value: str) -> None:
        self._require_context().set_system_variable(name, value)

    def store(self, name: str, value: str) -> None:
        """Writes a result variable: `_`/`#` names go to the system namespace, others are user variables."""
        if name.startswith(("_", "#")):
            self.set_system_variable(name, value)
        else:
            self.set(name, value)

    def unset(self, name: str) -> bool:
        return self._require_context().unset_variable(name)

    def get_all_variables(self) -> Dict[str, str]:
        return self._require_context().get_all_variables()

    def replace_system_variables(self, prefix: str, values: Dict[str, str]) -> None:
        """Replaces the whole `prefix` group, so no fact of an earlier write survives."""
        self._require_context().replace_system_variables(prefix, values)
