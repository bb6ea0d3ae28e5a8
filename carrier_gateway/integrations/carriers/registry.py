"""
Provider registry.

Holds the static ``ProviderConfig`` of every known carrier, keyed by the
lower-cased carrier name. Built once at start-up and handed to every
component that needs carrier configuration.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List

from carrier_gateway.integrations.carriers.errors import (
    DuplicateProviderError,
    UnconfiguredProviderError,
    UnknownProviderError,
)
from carrier_gateway.integrations.contracts.carriers import ProviderConfig

logger = logging.getLogger(__name__)


def provider_key(name: str) -> str:
    return (name or "").strip().lower()


class ProviderRegistry:
    def __init__(self) -> None:
        # dicts keep insertion order, which is the default fan-out order
        self._configs: Dict[str, ProviderConfig] = {}

    @classmethod
    def from_configs(cls, configs: Iterable[ProviderConfig]) -> "ProviderRegistry":
        registry = cls()
        for config in configs:
            registry.register(config)
        return registry

    def register(self, config: ProviderConfig) -> ProviderConfig:
        key = config.key
        if key in self._configs:
            raise DuplicateProviderError(f"Carrier '{config.name}' is already registered.", provider=config.name)
        self._configs[key] = config
        if not config.is_configured:
            logger.warning("Carrier %s registered without an API credential; calls will fail fast", config.name)
        else:
            logger.info("Carrier %s registered (base_url=%s)", config.name, config.base_url)
        return config

    def resolve(self, name: str) -> ProviderConfig:
        config = self._configs.get(provider_key(name))
        if config is None:
            raise UnknownProviderError(name)
        return config

    def resolve_configured(self, name: str) -> ProviderConfig:
        """Resolve ``name`` and require a credential to be present."""
        config = self.resolve(name)
        if not config.is_configured:
            raise UnconfiguredProviderError(config.name)
        return config

    def names(self) -> List[str]:
        """Registered carrier names, in registration order."""
        return [config.name for config in self._configs.values()]

    def configs(self) -> List[ProviderConfig]:
        return list(self._configs.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and provider_key(name) in self._configs

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)
