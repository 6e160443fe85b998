# src/neuroshell/core/service_registry.py
import abc
import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Type, TypeVar

from neuroshell.core.errors import (
    DuplicateRegistrationError,
    IncorrectServiceTypeError,
    InvalidNameError,
    ServiceInitializationError,
    ServiceUnavailableError,
)

if TYPE_CHECKING:
    from neuroshell.core.context.neuro_context import NeuroContext

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="Service")


class Service(metaclass=abc.ABCMeta):
    """A named, long-lived component that commands reach through the registry."""
    service_name: str = ""

    @property
    def name(self) -> str:
        return self.service_name

    @abc.abstractmethod
    def initialize(self, ctx: "NeuroContext") -> None:
        raise NotImplementedError("Every service must implement an 'initialize' method.")


class ServiceRegistry:
    """
    Holds services in registration order and brings them up in that order.

    Lookups fail closed: a service that is unregistered, not yet initialized,
    or that lives in a registry whose bring-up failed is never handed out.
    """

    def __init__(self):
        self._services: Dict[str, Service] = {}
        self._initialized: Set[str] = set()
        self._failed: Optional[str] = None
        self._lock = threading.RLock()

    def register_service(self, service: Service) -> None:
        name = service.name
        if not name:
            raise InvalidNameError("service name cannot be empty")
        with self._lock:
            if name in self._services:
                raise DuplicateRegistrationError(f"service {name} already registered")
            self._services[name] = service
        logger.debug("Registered service '%s'", name)

    def has_service(self, name: str) -> bool:
        with self._lock:
            return name in self._services

    def is_initialized(self, name: str) -> bool:
        with self._lock:
            return name in self._initialized

    @property
    def failed_service(self) -> Optional[str]:
        return self._failed

    def initialize_all(self, ctx: "NeuroContext") -> None:
        """
        Initializes every not-yet-initialized service in registration order.
        Stops at the first failure; services initialized before it stay up
        but the registry refuses all further lookups.
        """
        with self._lock:
            pending = [s for name, s in self._services.items() if not self.is_initialized(name)]

        for service in pending:
            logger.debug("Initializing service '%s'", service.name)
            try:
                service.initialize(ctx)
            except Exception as e:
                with self._lock:
                    self._failed = service.name
                logger.error("Failed to initialize service %s: %s", service.name, e)
                raise ServiceInitializationError(service.name, e) from e
            with self._lock:
                self._initialized.add(service.name)

    def get_service(self, name: str) -> Service:
        with self._lock:
            if self._failed is not None:
                raise ServiceUnavailableError(
                    f"service {name} unavailable: initialization of {self._failed} failed"
                )
            service = self._services.get(name)
            if service is None:
                raise ServiceUnavailableError(f"service {name} not found")
            if not self.is_initialized(name):
                raise ServiceUnavailableError(f"service {name} not initialized")
            return service

    def get_typed_service(self, name: str, service_type: Type[S]) -> S:
        service = self.get_service(name)
        if not isinstance(service, service_type):
            raise IncorrectServiceTypeError(
                f"{name} service has incorrect type: expected {service_type.__name__}, "
                f"got {type(service).__name__}"
            )
        return service

    def require(self, service_type: Type[S]) -> S:
        """Looks a service up by its class, using the class's `service_name`."""
        return self.get_typed_service(service_type.service_name, service_type)

    def get_all_services(self) -> List[Service]:
        with self._lock:
            return list(self._services.values())


# --- Process-wide default registry ---

_global_registry: Optional[ServiceRegistry] = None
_global_lock = threading.Lock()


def get_global_service_registry() -> ServiceRegistry:
    global _global_registry
    with _global_lock:
        if _global_registry is None:
            _global_registry = ServiceRegistry()
        return _global_registry


def set_global_service_registry(registry: Optional[ServiceRegistry]) -> Optional[ServiceRegistry]:
    """Swaps the default registry and returns the previous one."""
    global _global_registry
    with _global_lock:
        previous = _global_registry
        _global_registry = registry
        return previous
