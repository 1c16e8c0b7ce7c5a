from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set, Type

from ..errors import CircularDependencyError, ResolutionError
from .lifetime import Lifetime


@dataclass
class Registration:
    interface: Type
    implementation: Optional[Type] = None
    lifetime: Lifetime = Lifetime.TRANSIENT
    factory: Optional[Callable[[Container], Any]] = None
    kwargs: Dict[str, Any] = field(default_factory=dict)


class Container:
    """Minimal service container.

    Factories receive the container so they can resolve their own
    dependencies; re-entering the resolution of a type that is still being
    built raises :class:`CircularDependencyError`.
    """

    def __init__(self):
        self._registrations: Dict[Type, Registration] = {}
        self._singleton_instances: Dict[Type, Any] = {}
        self._resolving: Set[Type] = set()
        self._lock = threading.RLock()

    def register_singleton(self, interface: Type, implementation: Optional[Type] = None, **kwargs):
        self._register(interface, implementation, Lifetime.SINGLETON, kwargs)

    def register_transient(self, interface: Type, implementation: Optional[Type] = None, **kwargs):
        self._register(interface, implementation, Lifetime.TRANSIENT, kwargs)

    def register_factory(
        self,
        interface: Type,
        factory: Callable[[Container], Any],
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ):
        with self._lock:
            self._singleton_instances.pop(interface, None)
            self._registrations[interface] = Registration(
                interface=interface, lifetime=lifetime, factory=factory
            )

    def register_instance(self, interface: Type, instance: Any):
        with self._lock:
            self._registrations[interface] = Registration(
                interface=interface, implementation=type(instance), lifetime=Lifetime.SINGLETON
            )
            self._singleton_instances[interface] = instance

    def is_registered(self, interface: Type) -> bool:
        return interface in self._registrations

    def resolve(self, interface: Type) -> Any:
        with self._lock:
            reg = self._get_registration(interface)
            if reg.lifetime == Lifetime.SINGLETON and interface in self._singleton_instances:
                return self._singleton_instances[interface]
            if interface in self._resolving:
                raise CircularDependencyError(f"Circular dependency detected for {interface}")
            self._resolving.add(interface)
            try:
                instance = self._create(reg)
                if reg.lifetime == Lifetime.SINGLETON:
                    self._singleton_instances[interface] = instance
                return instance
            finally:
                self._resolving.discard(interface)

    def _register(self, interface: Type, implementation: Optional[Type], lifetime: Lifetime, kwargs):
        with self._lock:
            self._singleton_instances.pop(interface, None)
            self._registrations[interface] = Registration(
                interface=interface,
                implementation=implementation or interface,
                lifetime=lifetime,
                kwargs=kwargs,
            )

    def _get_registration(self, interface: Type) -> Registration:
        if interface not in self._registrations:
            raise ResolutionError(f"No registration found for {interface}")
        return self._registrations[interface]

    def _create(self, reg: Registration) -> Any:
        if reg.factory:
            return reg.factory(self)
        impl = reg.implementation or reg.interface
        return impl(**reg.kwargs)
