"""Registry of provider strategies.

Each provider is registered under a short name ("memory", "gmail",
"outlook") together with a factory. Swapping providers means registering a
different factory; the engine components never import a provider directly.
"""

from typing import Any, Callable

import structlog

from src.exceptions import ConfigError
from src.providers.base import MailProvider
from src.providers.in_memory import InMemoryMailProvider

log = structlog.stdlib.get_logger()

ProviderFactory = Callable[..., MailProvider]

_PROVIDERS: dict[str, ProviderFactory] = {
    "memory": InMemoryMailProvider,
}


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Register a provider factory under a name.

    Registering an existing name replaces the previous factory.

    Example - Register a Gmail strategy:
        register_provider("gmail", lambda **kw: GmailProvider(service, **kw))

    Args:
        name: Provider name used in configuration
        factory: Callable returning a MailProvider

    Raises:
        ConfigError: If name is empty
    """
    if not name or not name.strip():
        error_msg = "provider name cannot be empty"
        log.error("register_provider_failed", error=error_msg)
        raise ConfigError(error_msg)

    if name in _PROVIDERS:
        log.warning("provider_replaced", name=name)

    _PROVIDERS[name] = factory
    log.info("provider_registered", name=name)


def get_provider(name: str, **kwargs: Any) -> MailProvider:
    """Create a provider by its registered name.

    Args:
        name: Registered provider name
        **kwargs: Passed through to the provider factory

    Returns:
        MailProvider instance

    Raises:
        ConfigError: If no provider is registered under name
    """
    try:
        factory = _PROVIDERS[name]
    except KeyError:
        error_msg = f"Unknown provider: {name!r}. Registered: {', '.join(sorted(_PROVIDERS))}"
        log.error("get_provider_failed", name=name, error=error_msg)
        raise ConfigError(error_msg) from None

    log.info("initializing_provider", name=name)
    return factory(**kwargs)


def registered_providers() -> list[str]:
    """List registered provider names."""
    return sorted(_PROVIDERS)
