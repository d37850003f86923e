"""Provider contracts, strategies and the provider registry."""

from src.providers.base import (
    ChangeFeedFetcher,
    EntityHydrator,
    MailProvider,
    PageFetcher,
    StaleCheckpointDetector,
)
from src.providers.in_memory import InMemoryMailProvider
from src.providers.registry import get_provider, register_provider, registered_providers
from src.providers.strategy import (
    STRATEGY_FIELDS,
    FetchStrategy,
    select_fetch_strategy,
)

__all__ = [
    "ChangeFeedFetcher",
    "EntityHydrator",
    "FetchStrategy",
    "InMemoryMailProvider",
    "MailProvider",
    "PageFetcher",
    "STRATEGY_FIELDS",
    "StaleCheckpointDetector",
    "get_provider",
    "register_provider",
    "registered_providers",
    "select_fetch_strategy",
]
