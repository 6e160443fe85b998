# src/neuroshell/core/services/interpolation_service.py
import logging
from typing import Optional

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import ServiceUnavailableError
from neuroshell.core.interpolation import DEFAULT_MAX_ITERATIONS, Interpolator
from neuroshell.core.managers.config_manager import config_manager
from neuroshell.core.service_registry import Service
from neuroshell.model import ParsedCommand

logger = logging.getLogger(__name__)


class InterpolationService(Service):
    """Expands `${name}` references against the session's variables."""
    service_name = "interpolation"

    def __init__(self, max_iterations: Optional[int] = None):
        self._max_iterations = max_iterations
        self._interpolator: Optional[Interpolator] = None

    def initialize(self, ctx: NeuroContext) -> None:
        limit = self._max_iterations
        if limit is None:
            limit = config_manager.get_nested("interpolation.max_iterations", DEFAULT_MAX_ITERATIONS)
        self._interpolator = Interpolator(ctx.lookup_variable, max_iterations=limit)
        logger.debug("Interpolation limited to %d passes.", self._interpolator.max_iterations)

    @property
    def interpolator(self) -> Interpolator:
        if self._interpolator is None:
            raise ServiceUnavailableError("interpolation service not initialized")
        return self._interpolator

    def expand(self, text: str) -> str:
        return self.interpolator.expand(text)

    def expand_command(self, parsed: ParsedCommand) -> ParsedCommand:
        return self.interpolator.expand_command(parsed)
