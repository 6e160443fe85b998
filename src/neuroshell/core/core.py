# src/neuroshell/core/core.py
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from neuroshell.core.command_registry import (
    CommandRegistry,
    get_global_command_registry,
    register_all_commands,
)
from neuroshell.core.context.neuro_context import NeuroContext, get_global_context
from neuroshell.core.managers.config_manager import config_manager
from neuroshell.core.service_registry import ServiceRegistry, get_global_service_registry
from neuroshell.core.services.help_service import HelpService
from neuroshell.core.services.interpolation_service import InterpolationService
from neuroshell.core.services.model_service import ModelService
from neuroshell.core.services.stack_service import StackService
from neuroshell.core.services.variable_service import VariableService
from neuroshell.core.xngine import ExecuteEngine

logger = logging.getLogger(__name__)


def register_core_services(services: ServiceRegistry, commands: CommandRegistry) -> None:
    """Registers the builtin services in the order they must come up; known names are skipped."""
    for service in (
        VariableService(),
        InterpolationService(),
        StackService(),
        ModelService(),
        HelpService(commands),
    ):
        if not services.has_service(service.name):
            services.register_service(service)


class NeuroShell:
    """
    One wired shell: a command registry, a service registry, a context and
    the engine that runs lines against them.
    """

    def __init__(
            self,
            command_registry: CommandRegistry,
            service_registry: ServiceRegistry,
            context: NeuroContext,
    ) -> None:
        self.commands = command_registry
        self.services = service_registry
        self.context = context
        self.engine = ExecuteEngine(
            command_registry=command_registry,
            service_registry=service_registry,
            context=context,
            logger=logger,
        )

    @classmethod
    def create(
            cls,
            *,
            command_registry: Optional[CommandRegistry] = None,
            service_registry: Optional[ServiceRegistry] = None,
            context: Optional[NeuroContext] = None,
            test_mode: bool = False,
            register_builtins: bool = True,
    ) -> "NeuroShell":
        """
        Builds a shell, registering the discovered builtin commands and the
        core services, then initializes all services.
        """
        commands = command_registry if command_registry is not None else CommandRegistry()
        services = service_registry if service_registry is not None else ServiceRegistry()
        if context is None:
            context = NeuroContext(
                test_mode=test_mode,
                allowed_globals=config_manager.get_nested("variables.allowed_globals"),
            )
        elif test_mode:
            context.set_test_mode(True)

        if register_builtins:
            register_all_commands(commands)
            register_core_services(services, commands)

        shell = cls(commands, services, context)
        services.initialize_all(context)
        if services.has_service(InterpolationService.service_name):
            shell.engine.use_interpolator(services.require(InterpolationService).interpolator)
        logger.debug("Shell ready: %d commands, %d services.", len(commands), len(services.get_all_services()))
        return shell

    @classmethod
    def for_testing(cls, register_builtins: bool = True) -> "NeuroShell":
        """A fresh, isolated shell in test mode; shares no state with any other."""
        return cls.create(test_mode=True, register_builtins=register_builtins)

    def execute(self, line: str) -> None:
        self.engine.execute(line)

    def pending(self) -> List[str]:
        return [entry.render() for entry in self.context.peek_stack()]


# --- Process-wide default shell ---

_default_shell: Optional[NeuroShell] = None
_default_lock = threading.Lock()


def get_default_shell() -> NeuroShell:
    """The shell wired to the global registries and global context, created once."""
    global _default_shell
    with _default_lock:
        if _default_shell is None:
            _default_shell = NeuroShell.create(
                command_registry=get_global_command_registry(),
                service_registry=get_global_service_registry(),
                context=get_global_context(),
            )
        return _default_shell


def set_default_shell(shell: Optional[NeuroShell]) -> Optional[NeuroShell]:
    global _default_shell
    with _default_lock:
        previous = _default_shell
        _default_shell = shell
        return previous
