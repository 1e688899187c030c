"""Тесты для сервиса AI-генераций.

Проверяем:
- Сборку ProviderManager из настроек и config.yaml
- Запуск задачи (submit) у дефолтного и именованного провайдера
- Однократный опрос задачи (refresh) и защиту от отката статуса
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from pydantic import SecretStr

from mediagen.config.models import AIProvidersSettings
from mediagen.config.settings import Settings
from mediagen.config.yaml_config import ProviderEntry, YamlConfig
from mediagen.core.exceptions import (
    ProviderNotAvailableError,
    ProviderProtocolError,
    QueryNotSupportedError,
    TaskStatusRegressionError,
)
from mediagen.providers.ai import (
    GenerateParams,
    KieProvider,
    MediaType,
    ProviderManager,
    ReplicateProvider,
    TaskHandle,
    TaskResult,
    TaskStatus,
)
from mediagen.services.generation_service import (
    GenerationService,
    build_provider_manager,
    create_generation_service,
)

ProviderFactory = Callable[..., Any]

BOTH_KEYS = AIProvidersSettings(
    kie_api_key=SecretStr("kie-key"),
    replicate_api_token=SecretStr("r8_token"),
)


def text_params(prompt: str = "hello") -> GenerateParams:
    """Параметры текстовой генерации для фейковых провайдеров."""
    return GenerateParams(media_type=MediaType.TEXT, prompt=prompt)


def make_service(*providers: Any, default: Any = None) -> GenerationService:
    """Собрать сервис из готовых провайдеров."""
    manager = ProviderManager()
    for provider in providers:
        manager.add_provider(provider, is_default=provider is default)
    manager.seal()
    return GenerationService(manager)


# ==============================================================================
# СБОРКА МЕНЕДЖЕРА
# ==============================================================================


class TestBuildProviderManager:
    """Тесты сборки менеджера из конфигурации."""

    def test_registers_in_config_order(self) -> None:
        """Тест: провайдеры регистрируются в порядке config.providers."""
        config = YamlConfig(providers=["replicate", "kie"])

        manager = build_provider_manager(BOTH_KEYS, config)

        assert manager.get_provider_names() == ["replicate", "kie"]
        assert manager.is_sealed is True
        # без явного дефолта — первый зарегистрированный
        default_provider = manager.get_default_provider()
        assert default_provider is not None
        assert default_provider.name == "replicate"

    def test_explicit_default(self) -> None:
        """Тест: провайдер с default: true становится дефолтным."""
        config = YamlConfig(
            providers=[
                ProviderEntry(name="kie"),
                ProviderEntry(name="replicate", default=True),
            ]
        )

        manager = build_provider_manager(BOTH_KEYS, config)

        default_provider = manager.get_default_provider()
        assert isinstance(default_provider, ReplicateProvider)

    def test_skips_provider_without_key(self) -> None:
        """Тест: провайдер без API-ключа пропускается."""
        settings = AIProvidersSettings(kie_api_key=SecretStr("kie-key"))

        manager = build_provider_manager(settings, YamlConfig())

        assert manager.get_provider_names() == ["kie"]

    def test_skips_disabled_provider(self) -> None:
        """Тест: выключенный в конфиге провайдер не регистрируется."""
        config = YamlConfig(
            providers=[
                ProviderEntry(name="kie", enabled=False),
                ProviderEntry(name="replicate"),
            ]
        )

        manager = build_provider_manager(BOTH_KEYS, config)

        assert manager.get_provider_names() == ["replicate"]

    def test_unknown_provider_in_config(self) -> None:
        """Тест: опечатка в имени провайдера — ошибка, а не тихий пропуск."""
        config = YamlConfig(providers=["kei"])

        with pytest.raises(ProviderNotAvailableError, match="не зарегистрирован"):
            build_provider_manager(BOTH_KEYS, config)

    def test_passes_models_timeout_and_proxy(self) -> None:
        """Тест: модели по умолчанию, таймаут и прокси доходят до провайдеров."""
        config = YamlConfig(
            default_models={
                "kie": "V4_5",
                "replicate": "black-forest-labs/flux-schnell",
            },
            timeout=15,
        )

        manager = build_provider_manager(
            BOTH_KEYS, config, proxy_url="http://proxy:8080"
        )

        kie = manager.get_provider("kie")
        replicate = manager.get_provider("replicate")
        assert isinstance(kie, KieProvider)
        assert isinstance(replicate, ReplicateProvider)
        assert kie.configs.default_model == "V4_5"
        assert kie.configs.timeout == 15
        assert kie.configs.proxy_url == "http://proxy:8080"
        assert replicate.configs.default_model == "black-forest-labs/flux-schnell"

    def test_no_keys_gives_empty_manager(self) -> None:
        """Тест: без ключей менеджер пуст, но собран."""
        manager = build_provider_manager(AIProvidersSettings(), YamlConfig())

        assert manager.get_provider_names() == []
        assert manager.get_default_provider() is None


# ==============================================================================
# SUBMIT
# ==============================================================================


class TestSubmit:
    """Тесты запуска задачи."""

    @pytest.mark.asyncio
    async def test_submit_to_default_provider(self, fake_provider: ProviderFactory) -> None:
        """Тест: без имени задача уходит дефолтному провайдеру."""
        # Arrange
        first = fake_provider("first")
        second = fake_provider("second")
        service = make_service(first, second, default=second)
        params = text_params()

        # Act
        handle, result = await service.submit(params)

        # Assert
        assert handle == TaskHandle(provider_name="second", task_id="task-1")
        assert result.task_status is TaskStatus.PENDING
        assert second.generate_calls == [params]
        assert first.generate_calls == []

    @pytest.mark.asyncio
    async def test_submit_to_named_provider(self, fake_provider: ProviderFactory) -> None:
        """Тест: задача уходит провайдеру с указанным именем."""
        first = fake_provider("first")
        second = fake_provider("second")
        service = make_service(first, second)

        handle, _ = await service.submit(text_params(), provider_name="second")

        assert handle.provider_name == "second"
        assert len(second.generate_calls) == 1

    @pytest.mark.asyncio
    async def test_submit_unknown_provider(self, fake_provider: ProviderFactory) -> None:
        """Тест: неизвестный провайдер — ProviderNotAvailableError."""
        service = make_service(fake_provider("first"))

        with pytest.raises(ProviderNotAvailableError) as exc_info:
            await service.submit(text_params(), provider_name="missing")

        assert exc_info.value.provider_type == "missing"

    @pytest.mark.asyncio
    async def test_submit_without_providers(self) -> None:
        """Тест: пустой менеджер — ProviderNotAvailableError."""
        service = make_service()

        with pytest.raises(ProviderNotAvailableError):
            await service.submit(text_params())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_result",
        [
            TaskResult(task_status=TaskStatus.SUCCESS, task_id="task-1"),
            TaskResult(task_status=TaskStatus.PENDING, task_id=""),
        ],
    )
    async def test_submit_rejects_invalid_initial_result(
        self,
        bad_result: TaskResult,
        fake_provider: ProviderFactory,
    ) -> None:
        """Тест: generate() обязан вернуть PENDING с непустым task_id."""
        service = make_service(fake_provider("first", result=bad_result))

        with pytest.raises(ProviderProtocolError):
            await service.submit(text_params())


# ==============================================================================
# REFRESH
# ==============================================================================


class TestRefresh:
    """Тесты однократного опроса задачи."""

    @pytest.mark.asyncio
    async def test_refresh_returns_new_result(
        self,
        fake_pollable_provider: ProviderFactory,
    ) -> None:
        """Тест: refresh() опрашивает провайдера из ключа задачи."""
        done = TaskResult(task_status=TaskStatus.SUCCESS, task_id="task-1")
        provider = fake_pollable_provider("poll", results=[done])
        service = make_service(provider)

        result = await service.refresh(TaskHandle("poll", "task-1"))

        assert result is done
        assert provider.query_calls == ["task-1"]

    @pytest.mark.asyncio
    async def test_refresh_forward_transition(
        self,
        fake_pollable_provider: ProviderFactory,
    ) -> None:
        """Тест: переход PENDING -> PROCESSING допустим."""
        previous = TaskResult(task_status=TaskStatus.PENDING, task_id="task-1")
        current = TaskResult(task_status=TaskStatus.PROCESSING, task_id="task-1")
        service = make_service(fake_pollable_provider("poll", results=[current]))

        result = await service.refresh(TaskHandle("poll", "task-1"), previous=previous)

        assert result.task_status is TaskStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_refresh_status_regression(
        self,
        fake_pollable_provider: ProviderFactory,
    ) -> None:
        """Тест: откат SUCCESS -> PENDING — TaskStatusRegressionError."""
        previous = TaskResult(task_status=TaskStatus.SUCCESS, task_id="task-1")
        current = TaskResult(task_status=TaskStatus.PENDING, task_id="task-1")
        service = make_service(fake_pollable_provider("poll", results=[current]))

        with pytest.raises(TaskStatusRegressionError) as exc_info:
            await service.refresh(TaskHandle("poll", "task-1"), previous=previous)

        assert exc_info.value.previous == "success"
        assert exc_info.value.current == "pending"

    @pytest.mark.asyncio
    async def test_refresh_webhook_only_provider(self, fake_provider: ProviderFactory) -> None:
        """Тест: провайдер без опроса — QueryNotSupportedError."""
        service = make_service(fake_provider("hook"))

        with pytest.raises(QueryNotSupportedError):
            await service.refresh(TaskHandle("hook", "task-1"))

    @pytest.mark.asyncio
    async def test_refresh_unknown_provider(self) -> None:
        """Тест: задача неизвестного провайдера — ProviderNotAvailableError."""
        service = make_service()

        with pytest.raises(ProviderNotAvailableError):
            await service.refresh(TaskHandle("gone", "task-1"))


# ==============================================================================
# СОЗДАНИЕ СЕРВИСА
# ==============================================================================


def test_create_generation_service(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Тест: сервис собирается из настроек и config.yaml по пути из настроек."""
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "providers.yaml"
    config_file.write_text(
        "providers:\n  - name: kie\n    default: true\n  - name: replicate\n",
        encoding="utf-8",
    )
    settings = Settings(
        ai=BOTH_KEYS,
        config_path=str(config_file),
    )

    service = create_generation_service(settings)

    assert service.manager.get_provider_names() == ["kie", "replicate"]
    default_provider = service.manager.get_default_provider()
    assert default_provider is not None
    assert default_provider.name == "kie"
