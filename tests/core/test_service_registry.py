# tests/core/test_service_registry.py
import threading

import pytest

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import (
    DuplicateRegistrationError,
    IncorrectServiceTypeError,
    InvalidNameError,
    ServiceInitializationError,
    ServiceUnavailableError,
)
from neuroshell.core.service_registry import (
    Service,
    ServiceRegistry,
    get_global_service_registry,
    set_global_service_registry,
)


class TrackingService(Service):
    def __init__(self, name, log, fail=False):
        self.service_name = name
        self.log = log
        self.fail = fail
        self.ctx = None

    def initialize(self, ctx):
        self.log.append(self.service_name)
        if self.fail:
            raise RuntimeError(f"{self.service_name} exploded")
        self.ctx = ctx


class OtherService(Service):
    service_name = "other"

    def initialize(self, ctx):
        pass


@pytest.fixture
def ctx():
    return NeuroContext(test_mode=True)


@pytest.fixture
def registry():
    return ServiceRegistry()


def test_unregistered_service_is_unavailable(registry):
    with pytest.raises(ServiceUnavailableError):
        registry.get_service("ghost")


def test_registered_but_uninitialized_is_unavailable(registry):
    registry.register_service(TrackingService("alpha", []))
    assert registry.has_service("alpha")
    with pytest.raises(ServiceUnavailableError, match="not initialized"):
        registry.get_service("alpha")


def test_initialize_all_runs_in_registration_order(registry, ctx):
    log = []
    for name in ("first", "second", "third"):
        registry.register_service(TrackingService(name, log))
    registry.initialize_all(ctx)
    assert log == ["first", "second", "third"]
    assert registry.get_service("second").ctx is ctx


def test_duplicate_service_name_fails(registry):
    registry.register_service(TrackingService("alpha", []))
    with pytest.raises(DuplicateRegistrationError):
        registry.register_service(TrackingService("alpha", []))


def test_empty_service_name_fails(registry):
    with pytest.raises(InvalidNameError):
        registry.register_service(TrackingService("", []))


def test_failed_initialization_stops_and_fails_closed(registry, ctx):
    log = []
    registry.register_service(TrackingService("ok", log))
    registry.register_service(TrackingService("broken", log, fail=True))
    registry.register_service(TrackingService("never", log))

    with pytest.raises(ServiceInitializationError) as excinfo:
        registry.initialize_all(ctx)

    assert excinfo.value.service_name == "broken"
    assert "failed to initialize service broken" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert log == ["ok", "broken"]
    assert registry.failed_service == "broken"

    # Even the service that came up is no longer handed out
    with pytest.raises(ServiceUnavailableError):
        registry.get_service("ok")


def test_typed_lookup_checks_type(registry, ctx):
    registry.register_service(TrackingService("other", []))
    registry.initialize_all(ctx)
    with pytest.raises(IncorrectServiceTypeError, match="other service has incorrect type"):
        registry.get_typed_service("other", OtherService)


def test_incorrect_type_is_a_service_unavailable_error():
    assert issubclass(IncorrectServiceTypeError, ServiceUnavailableError)


def test_require_uses_class_name_token(registry, ctx):
    service = OtherService()
    registry.register_service(service)
    registry.initialize_all(ctx)
    assert registry.require(OtherService) is service


def test_initialize_all_twice_only_initializes_new_services(registry, ctx):
    log = []
    registry.register_service(TrackingService("a", log))
    registry.initialize_all(ctx)
    registry.register_service(TrackingService("b", log))
    registry.initialize_all(ctx)
    assert log == ["a", "b"]


def test_get_all_services_in_order(registry):
    registry.register_service(TrackingService("x", []))
    registry.register_service(OtherService())
    assert [s.name for s in registry.get_all_services()] == ["x", "other"]


def test_global_registry_swap():
    replacement = ServiceRegistry()
    previous = set_global_service_registry(replacement)
    try:
        assert get_global_service_registry() is replacement
    finally:
        set_global_service_registry(previous)


def test_is_initialized_tracks_each_service(registry, ctx):
    registry.register_service(TrackingService("early", []))
    registry.initialize_all(ctx)
    registry.register_service(TrackingService("late", []))
    assert registry.is_initialized("early")
    assert not registry.is_initialized("late")
    assert not registry.is_initialized("ghost")


# --- Concurrency ---

def run_together(worker, count=8):
    barrier = threading.Barrier(count)

    def start(index):
        barrier.wait()
        worker(index)

    threads = [threading.Thread(target=start, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_concurrent_service_registration_admits_exactly_one(registry):
    results = []

    def worker(index):
        try:
            registry.register_service(TrackingService("race", []))
            results.append("ok")
        except DuplicateRegistrationError:
            results.append("dup")

    run_together(worker)

    assert results.count("ok") == 1
    assert len(results) == 8
    assert len(registry.get_all_services()) == 1


def test_concurrent_registration_and_lookup(registry, ctx):
    registry.register_service(TrackingService("shared", []))
    registry.initialize_all(ctx)
    errors = []

    def worker(index):
        try:
            if index % 2:
                registry.register_service(TrackingService(f"svc-{index}", []))
            for _ in range(50):
                assert registry.get_service("shared").name == "shared"
                registry.has_service(f"svc-{index}")
                registry.get_all_services()
        except Exception as e:
            errors.append(e)

    run_together(worker)

    assert errors == []
    assert len(registry.get_all_services()) == 1 + 4


def test_concurrent_global_registry_swaps():
    original = get_global_service_registry()
    replacements = [ServiceRegistry() for _ in range(8)]
    previous = []
    current = []

    def worker(index):
        previous.append(set_global_service_registry(replacements[index]))
        current.append(get_global_service_registry())

    try:
        run_together(worker)
        final = get_global_service_registry()
        assert all(isinstance(r, ServiceRegistry) for r in current)
        # The installs form one chain: each saw a distinct predecessor, none was lost
        assert len({id(r) for r in previous}) == 8
        assert {id(r) for r in previous} | {id(final)} == {id(r) for r in replacements} | {id(original)}
    finally:
        set_global_service_registry(original)
