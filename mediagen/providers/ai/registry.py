"""Реестр фабрик AI-провайдеров (паттерн Registry, Open/Closed Principle).

Модуль каждого провайдера регистрирует свою фабрику при импорте.
Фабрика создаёт экземпляр провайдера из настроек, если настроен API-ключ.
Собранные экземпляры попадают в ProviderManager (см. manager.py).
"""

from typing import Protocol

from mediagen.config.models import AIProvidersSettings
from mediagen.core.exceptions import ProviderNotAvailableError
from mediagen.providers.ai.base import BaseAIProvider
from mediagen.utils.logging import get_logger

logger = get_logger(__name__)


class ProviderFactory(Protocol):
    """Протокол фабрики провайдеров (structural subtyping)."""

    def create(
        self,
        settings: AIProvidersSettings,
        *,
        proxy_url: str | None = None,
        timeout: float | None = None,
        default_model: str | None = None,
    ) -> BaseAIProvider | None:
        """Создать провайдер если доступен API-ключ."""
        ...


class ProviderFactoryRegistry:
    """Реестр фабрик AI-провайдеров."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, provider_type: str, factory: ProviderFactory) -> None:
        """Зарегистрировать фабрику провайдера."""
        self._factories[provider_type] = factory
        logger.debug("Зарегистрирована фабрика провайдера: %s", provider_type)

    def create_provider(
        self,
        provider_type: str,
        settings: AIProvidersSettings,
        *,
        proxy_url: str | None = None,
        timeout: float | None = None,
        default_model: str | None = None,
    ) -> BaseAIProvider:
        """Создать провайдер по типу."""
        if provider_type not in self._factories:
            raise ProviderNotAvailableError(
                f"Провайдер '{provider_type}' не зарегистрирован. "
                f"Доступные: {', '.join(sorted(self._factories.keys()))}",
                provider_type=provider_type,
            )

        provider = self._factories[provider_type].create(
            settings,
            proxy_url=proxy_url,
            timeout=timeout,
            default_model=default_model,
        )

        if provider is None:
            raise ProviderNotAvailableError(
                f"API-ключ для '{provider_type}' не настроен.",
                provider_type=provider_type,
            )

        return provider

    def list_providers(self) -> list[str]:
        """Список зарегистрированных типов провайдеров."""
        return sorted(self._factories.keys())


_registry = ProviderFactoryRegistry()


def register_provider(provider_type: str, factory: ProviderFactory) -> None:
    """Зарегистрировать фабрику в глобальном реестре."""
    _registry.register(provider_type, factory)


def get_registry() -> ProviderFactoryRegistry:
    """Получить глобальный реестр фабрик."""
    return _registry
