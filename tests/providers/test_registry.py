"""Тесты для реестра фабрик AI-провайдеров."""

from collections.abc import Callable
from typing import Any

import pytest
from pydantic import SecretStr

from mediagen.config.models import AIProvidersSettings
from mediagen.core.exceptions import ProviderNotAvailableError
from mediagen.providers.ai import KieProvider, ReplicateProvider
from mediagen.providers.ai.base import BaseAIProvider
from mediagen.providers.ai.registry import ProviderFactoryRegistry, get_registry


class MockFactory:
    """Мок-фабрика для тестирования."""

    def __init__(
        self,
        make_provider: Callable[..., BaseAIProvider],
        should_return_provider: bool = True,
        provider_name: str = "mock-provider",
    ) -> None:
        self.make_provider = make_provider
        self.should_return_provider = should_return_provider
        self.provider_name = provider_name
        self.calls: list[dict[str, Any]] = []

    def create(
        self,
        settings: AIProvidersSettings,
        *,
        proxy_url: str | None = None,
        timeout: float | None = None,
        default_model: str | None = None,
    ) -> BaseAIProvider | None:
        """Создать провайдер или None."""
        self.calls.append(
            {
                "settings": settings,
                "proxy_url": proxy_url,
                "timeout": timeout,
                "default_model": default_model,
            }
        )
        if self.should_return_provider:
            return self.make_provider(self.provider_name)
        return None


def test_registry_register_and_create(
    fake_provider: Callable[..., BaseAIProvider],
) -> None:
    """Тест: зарегистрированная фабрика создаёт провайдер."""
    registry = ProviderFactoryRegistry()
    registry.register("test-provider", MockFactory(fake_provider))

    provider = registry.create_provider("test-provider", AIProvidersSettings())

    assert provider.name == "mock-provider"
    assert registry.list_providers() == ["test-provider"]


def test_registry_passes_options_to_factory(
    fake_provider: Callable[..., BaseAIProvider],
) -> None:
    """Тест: прокси, таймаут и модель передаются в фабрику."""
    registry = ProviderFactoryRegistry()
    factory = MockFactory(fake_provider)
    registry.register("test-provider", factory)
    settings = AIProvidersSettings()

    registry.create_provider(
        "test-provider",
        settings,
        proxy_url="http://proxy:8080",
        timeout=30.0,
        default_model="model-x",
    )

    assert factory.calls == [
        {
            "settings": settings,
            "proxy_url": "http://proxy:8080",
            "timeout": 30.0,
            "default_model": "model-x",
        }
    ]


def test_registry_unknown_provider() -> None:
    """Тест: незарегистрированный тип — ошибка со списком доступных."""
    registry = ProviderFactoryRegistry()

    with pytest.raises(ProviderNotAvailableError, match="не зарегистрирован") as exc_info:
        registry.create_provider("unknown", AIProvidersSettings())

    assert exc_info.value.provider_type == "unknown"


def test_registry_factory_returns_none(
    fake_provider: Callable[..., BaseAIProvider],
) -> None:
    """Тест: фабрика без ключа — ошибка о ненастроенном API-ключе."""
    registry = ProviderFactoryRegistry()
    registry.register("test-provider", MockFactory(fake_provider, should_return_provider=False))

    with pytest.raises(ProviderNotAvailableError, match="API-ключ"):
        registry.create_provider("test-provider", AIProvidersSettings())


def test_registry_list_providers_sorted(
    fake_provider: Callable[..., BaseAIProvider],
) -> None:
    """Тест: список провайдеров отсортирован."""
    registry = ProviderFactoryRegistry()
    registry.register("zeta", MockFactory(fake_provider))
    registry.register("alpha", MockFactory(fake_provider))

    assert registry.list_providers() == ["alpha", "zeta"]


def test_global_registry_has_builtin_providers() -> None:
    """Тест: Kie и Replicate регистрируются при импорте пакета."""
    registry = get_registry()

    assert "kie" in registry.list_providers()
    assert "replicate" in registry.list_providers()


def test_global_registry_creates_builtin_providers() -> None:
    """Тест: глобальный реестр создаёт встроенные провайдеры по ключам."""
    settings = AIProvidersSettings(
        kie_api_key=SecretStr("kie-key"),
        replicate_api_token=SecretStr("r8_token"),
    )
    registry = get_registry()

    assert isinstance(registry.create_provider("kie", settings), KieProvider)
    assert isinstance(registry.create_provider("replicate", settings), ReplicateProvider)
