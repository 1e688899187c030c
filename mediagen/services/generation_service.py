"""Сервис для оркестрации AI-генераций.

Собирает ProviderManager из настроек и config.yaml и даёт два примитива:
- submit() — запустить задачу у выбранного (или дефолтного) провайдера
- refresh() — один раз перечитать состояние задачи у провайдера

Цикл опроса, таймауты и повторы — ответственность вызывающего кода.
"""

from typing import TYPE_CHECKING

from mediagen.config.models import AIProvidersSettings
from mediagen.config.yaml_config import YamlConfig
from mediagen.core.exceptions import (
    ProviderNotAvailableError,
    ProviderProtocolError,
    TaskStatusRegressionError,
)
from mediagen.providers.ai import (
    BaseAIProvider,
    GenerateParams,
    ProviderManager,
    TaskHandle,
    TaskResult,
    TaskStatus,
)
from mediagen.providers.ai.registry import ProviderFactoryRegistry, get_registry
from mediagen.utils.logging import get_logger

if TYPE_CHECKING:
    from mediagen.config.settings import Settings

logger = get_logger(__name__)


def build_provider_manager(
    settings: AIProvidersSettings,
    config: YamlConfig,
    proxy_url: str | None = None,
    registry: ProviderFactoryRegistry | None = None,
) -> ProviderManager:
    """Создать и закрыть (seal) менеджер провайдеров.

    Провайдеры регистрируются в порядке config.providers. Провайдеры без
    API-ключа пропускаются с предупреждением.

    Args:
        settings: Настройки AI-провайдеров (ключи, URL).
        config: YAML-конфигурация (порядок, дефолт, модели, таймаут).
        proxy_url: URL прокси-сервера (опционально).
        registry: Реестр фабрик (по умолчанию — глобальный).

    Returns:
        Менеджер, закрытый для изменений.

    Raises:
        ProviderNotAvailableError: Провайдер из конфига не зарегистрирован
            в реестре фабрик (опечатка в config.yaml).
    """
    registry = registry or get_registry()
    manager = ProviderManager()

    for entry in config.get_enabled_providers():
        try:
            provider = registry.create_provider(
                entry.name,
                settings,
                proxy_url=proxy_url,
                timeout=config.timeout,
                default_model=config.get_default_model(entry.name),
            )
        except ProviderNotAvailableError:
            if entry.name not in registry.list_providers():
                raise
            logger.warning("Провайдер '%s' пропущен: API-ключ не настроен", entry.name)
            continue

        manager.add_provider(provider, is_default=entry.default)

    manager.seal()

    default_provider = manager.get_default_provider()
    logger.info(
        "Провайдеры: %s, по умолчанию: %s, прокси=%s",
        ", ".join(manager.get_provider_names()) or "нет",
        default_provider.name if default_provider else "нет",
        "да" if proxy_url else "нет",
    )
    return manager


class GenerationService:
    """Центральный сервис для AI-генераций.

    Не хранит задачи: вызывающий код сам сохраняет TaskHandle
    и последний TaskResult.
    """

    def __init__(self, manager: ProviderManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> ProviderManager:
        """Менеджер провайдеров."""
        return self._manager

    def _resolve_provider(self, provider_name: str | None) -> BaseAIProvider:
        """Найти провайдер по имени или взять провайдер по умолчанию."""
        if provider_name is None:
            provider = self._manager.get_default_provider()
        else:
            provider = self._manager.get_provider(provider_name)

        if provider is None:
            raise ProviderNotAvailableError(
                f"Провайдер '{provider_name or 'по умолчанию'}' недоступен. "
                f"Доступные: {', '.join(self._manager.get_provider_names()) or 'нет'}",
                provider_type=provider_name,
            )
        return provider

    async def submit(
        self,
        params: GenerateParams,
        provider_name: str | None = None,
    ) -> tuple[TaskHandle, TaskResult]:
        """Запустить задачу генерации.

        Args:
            params: Канонические параметры генерации.
            provider_name: Имя провайдера. None — провайдер по умолчанию.

        Returns:
            Ключ задачи (provider_name, task_id) и результат в статусе PENDING.
        """
        provider = self._resolve_provider(provider_name)

        logger.debug(
            "Генерация: provider=%s, media_type=%s, model=%s",
            provider.name,
            params.media_type.value,
            params.model or "по умолчанию",
        )

        result = await provider.generate(params)

        if result.task_status is not TaskStatus.PENDING or not result.task_id:
            raise ProviderProtocolError(
                f"Провайдер вернул недопустимый начальный статус: {result.task_status}",
                provider=provider.name,
                model_id=params.model,
            )

        handle = TaskHandle(provider_name=provider.name, task_id=result.task_id)
        logger.info("Задача запущена: %s:%s", handle.provider_name, handle.task_id)
        return handle, result

    async def refresh(
        self,
        handle: TaskHandle,
        previous: TaskResult | None = None,
    ) -> TaskResult:
        """Перечитать состояние задачи у провайдера.

        Args:
            handle: Ключ задачи из submit().
            previous: Последний известный результат. Если передан —
                проверяется, что статус не откатился назад.

        Raises:
            ProviderNotAvailableError: Провайдер не зарегистрирован.
            QueryNotSupportedError: Провайдер не умеет опрашивать статус.
            TaskStatusRegressionError: Статус откатился назад.
        """
        provider = self._manager.get_pollable_provider(handle.provider_name)
        result = await provider.query(handle.task_id)

        if previous is not None and not previous.task_status.can_transition_to(
            result.task_status
        ):
            raise TaskStatusRegressionError(
                provider=handle.provider_name,
                task_id=handle.task_id,
                previous=previous.task_status.value,
                current=result.task_status.value,
            )

        logger.debug(
            "Статус задачи %s:%s — %s",
            handle.provider_name,
            handle.task_id,
            result.task_status.value,
        )
        return result


def create_generation_service(
    settings: "Settings | None" = None,
) -> GenerationService:
    """Создать сервис с настройками из окружения и config.yaml."""
    from mediagen.config.settings import load_settings
    from mediagen.config.yaml_config import load_yaml_config

    settings = settings or load_settings()
    config = load_yaml_config(settings.config_path)
    manager = build_provider_manager(settings.ai, config, proxy_url=settings.proxy)
    return GenerationService(manager)
