"""Dependency injection container for the Femo client."""
from __future__ import annotations

from functools import lru_cache
import inspect
from typing import Any, Callable, Dict, Type

import requests

from femo_client.application.auth_manager import AuthManager
from femo_client.application.profile_service import ProfileService
from femo_client.application.registration_service import RegistrationService
from femo_client.application.session_store import SessionStore
from femo_client.application.shell import AppShell, Navigator
from femo_client.config import settings as app_settings
from femo_client.domain.key_value_store import KeyValueStore
from femo_client.infrastructure.http_client import AuthenticatedHttpClient
from femo_client.infrastructure.key_value_store import JsonFileKeyValueStore

ServiceType = Type[Any]
Factory = Callable[["Container"], Any]


class Container:
    """Minimal service container supporting factories and instances.

    Factory results are cached so every consumer shares one session owner.
    """

    def __init__(self) -> None:
        self._factories: Dict[ServiceType, Factory] = {}
        self._instances: Dict[ServiceType, Any] = {}

    def register(
        self,
        service: ServiceType,
        *,
        factory: Factory | None = None,
        instance: Any | None = None,
    ) -> None:
        if instance is not None:
            self._instances[service] = instance
            self._factories.pop(service, None)
            return
        if factory is None:
            raise ValueError("Either factory or instance must be provided.")
        self._factories[service] = factory
        self._instances.pop(service, None)

    def resolve(self, service: ServiceType) -> Any:
        if service in self._instances:
            return self._instances[service]
        try:
            factory = self._factories[service]
        except KeyError as exc:
            raise KeyError(f"No provider registered for {service!r}") from exc
        instance = factory(self)
        self._instances[service] = instance
        return instance


def _register_defaults(container: Container) -> None:
    """Register the production service graph with the container."""
    container.register(requests.Session, factory=lambda _c: requests.Session())
    container.register(
        KeyValueStore,
        factory=lambda _c: JsonFileKeyValueStore(app_settings.FEMO_SESSION_STORE_PATH),
    )
    container.register(SessionStore, factory=lambda c: SessionStore(c.resolve(KeyValueStore)))
    container.register(
        AuthManager,
        factory=lambda c: AuthManager(
            c.resolve(SessionStore),
            transport=c.resolve(requests.Session),
            base_url=app_settings.api_base_url,
            timeout=app_settings.FEMO_REQUEST_TIMEOUT,
            single_flight=app_settings.FEMO_REFRESH_SINGLE_FLIGHT,
        ),
    )
    container.register(
        AuthenticatedHttpClient,
        factory=lambda c: AuthenticatedHttpClient(
            c.resolve(AuthManager),
            transport=c.resolve(requests.Session),
            timeout=app_settings.FEMO_REQUEST_TIMEOUT,
        ),
    )
    container.register(Navigator, factory=lambda _c: Navigator())
    container.register(
        AppShell,
        factory=lambda c: AppShell(c.resolve(AuthManager), c.resolve(Navigator)),
    )
    container.register(
        ProfileService,
        factory=lambda c: ProfileService(c.resolve(AuthenticatedHttpClient), c.resolve(AuthManager)),
    )
    container.register(
        RegistrationService,
        factory=lambda c: RegistrationService(
            transport=c.resolve(requests.Session),
            base_url=app_settings.api_base_url,
            timeout=app_settings.FEMO_REQUEST_TIMEOUT,
        ),
    )



def _wrap_override(provider: Any) -> Factory:
    if inspect.isfunction(provider) or inspect.ismethod(provider):
        signature = inspect.signature(provider)
        if len(signature.parameters) == 0:
            return lambda _c, fn=provider: fn()
        return lambda c, fn=provider: fn(c)
    if isinstance(provider, type):
        return lambda _c, cls=provider: cls()
    return lambda _c, value=provider: value


def build_container(overrides: Dict[ServiceType, Any] | None = None) -> Container:
    """Create a new container with optional dependency overrides."""
    container = Container()
    _register_defaults(container)

    if overrides:
        for service, provider in overrides.items():
            factory = _wrap_override(provider)
            if isinstance(provider, (type,)) or inspect.isfunction(provider) or inspect.ismethod(provider):
                container.register(service, factory=factory)
            else:
                container.register(service, instance=factory(container))

    return container


@lru_cache(maxsize=1)
def get_container() -> Container:
    """Return a cached container instance for application use."""
    return build_container()


__all__ = ["Container", "build_container", "get_container"]
