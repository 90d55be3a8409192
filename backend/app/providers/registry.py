"""Lookup table of provider implementations."""

from typing import Dict, List, Optional, Type

from app.config import Settings
from app.providers.base import BaseProvider, ProviderConfig
from app.providers.tempo_provider import TempoProvider
from app.providers.toggl_provider import TogglProvider

PROVIDER_TYPES: Dict[str, Type[BaseProvider]] = {
    TogglProvider.name: TogglProvider,
    TempoProvider.name: TempoProvider,
}


class UnknownProviderError(KeyError):
    pass


def provider_config(name: str, settings: Settings) -> ProviderConfig:
    """Lift a provider's credentials out of the settings object."""
    key = name.upper()
    if key == TogglProvider.name:
        return ProviderConfig(
            base_url=settings.toggl_base_url,
            api_token=settings.toggl_api_token,
            timeout=settings.http_timeout_seconds,
        )
    if key == TempoProvider.name:
        return ProviderConfig(
            base_url=settings.tempo_base_url,
            api_token=settings.tempo_api_token,
            timeout=settings.http_timeout_seconds,
            settings={"jira_base_url": settings.jira_base_url},
        )
    raise UnknownProviderError(name)


def get_provider(name: str, settings: Settings, config: Optional[ProviderConfig] = None) -> BaseProvider:
    key = name.upper()
    provider_class = PROVIDER_TYPES.get(key)
    if provider_class is None:
        raise UnknownProviderError(name)
    return provider_class(config or provider_config(key, settings))


def get_all_providers(settings: Settings) -> List[BaseProvider]:
    """Every registered provider, configured or not; an unconfigured one fails its own pass."""
    return [get_provider(name, settings) for name in PROVIDER_TYPES]
