from abc import ABC, abstractmethod

import pytest

from iCropper.di import Container, Lifetime
from iCropper.errors import CircularDependencyError, ResolutionError


class IService(ABC):
    @abstractmethod
    def do_something(self):
        pass


class ServiceImpl(IService):
    def do_something(self):
        return "done"


class ServiceWithArgs(IService):
    def __init__(self, value):
        self.value = value

    def do_something(self):
        return self.value


def test_register_resolve_transient():
    container = Container()
    container.register_transient(IService, ServiceImpl)

    s1 = container.resolve(IService)
    s2 = container.resolve(IService)

    assert isinstance(s1, ServiceImpl)
    assert s1 is not s2


def test_register_resolve_singleton():
    container = Container()
    container.register_singleton(IService, ServiceImpl)

    assert container.resolve(IService) is container.resolve(IService)


def test_register_with_kwargs():
    container = Container()
    container.register_transient(IService, ServiceWithArgs, value="test_value")

    assert container.resolve(IService).do_something() == "test_value"


def test_factory_receives_container():
    container = Container()
    container.register_instance(str, "configured")
    container.register_factory(IService, lambda c: ServiceWithArgs(c.resolve(str)), Lifetime.SINGLETON)

    service = container.resolve(IService)

    assert service.do_something() == "configured"
    assert container.resolve(IService) is service


def test_register_instance():
    container = Container()
    instance = ServiceImpl()
    container.register_instance(IService, instance)

    assert container.is_registered(IService)
    assert container.resolve(IService) is instance


def test_reregistering_drops_cached_singleton():
    container = Container()
    container.register_singleton(IService, ServiceImpl)
    first = container.resolve(IService)

    container.register_singleton(IService, ServiceImpl)

    assert container.resolve(IService) is not first


def test_resolve_unregistered():
    container = Container()
    with pytest.raises(ResolutionError):
        container.resolve(IService)


def test_circular_dependency_detected():
    container = Container()
    container.register_factory(IService, lambda c: c.resolve(str))
    container.register_factory(str, lambda c: c.resolve(IService))

    with pytest.raises(CircularDependencyError):
        container.resolve(IService)
