"""AI-провайдеры для генерации контента.

Этот пакет реализует плагинную архитектуру для работы с AI-сервисами.
Каждый провайдер реализует единый интерфейс BaseAIProvider
(или PollableAIProvider, если умеет опрашивать статус задачи).

Поддерживаемые провайдеры:
- Kie (https://kie.ai) — генерация музыки (Suno), custom mode
- Replicate (https://replicate.com) — любые модели изображений

Пример использования:
    from mediagen.providers.ai import (
        GenerateParams,
        KieConfigs,
        KieProvider,
        MediaType,
        ProviderManager,
    )

    manager = ProviderManager()
    manager.add_provider(KieProvider(KieConfigs(api_key="...")), is_default=True)
    manager.seal()

    provider = manager.get_default_provider()
    result = await provider.generate(
        GenerateParams(media_type=MediaType.MUSIC, prompt="lofi beat")
    )
"""

from mediagen.core.exceptions import (
    GenerationError,
    GenerationValidationError,
    ProviderNotAvailableError,
    ProviderProtocolError,
    ProviderTransportError,
    QueryNotSupportedError,
    RegistrySealedError,
    UnknownTaskStatusError,
)
from mediagen.providers.ai.base import (
    BaseAIProvider,
    GenerateParams,
    Image,
    MediaType,
    PollableAIProvider,
    Song,
    TaskHandle,
    TaskInfo,
    TaskResult,
    TaskStatus,
    is_pollable,
)
from mediagen.providers.ai.kie import KieConfigs, KieMusicOptions, KieProvider
from mediagen.providers.ai.manager import ProviderManager
from mediagen.providers.ai.replicate import ReplicateConfigs, ReplicateProvider

__all__ = [
    "BaseAIProvider",
    "GenerateParams",
    "GenerationError",
    "GenerationValidationError",
    "Image",
    "KieConfigs",
    "KieMusicOptions",
    "KieProvider",
    "MediaType",
    "PollableAIProvider",
    "ProviderManager",
    "ProviderNotAvailableError",
    "ProviderProtocolError",
    "ProviderTransportError",
    "QueryNotSupportedError",
    "RegistrySealedError",
    "ReplicateConfigs",
    "ReplicateProvider",
    "Song",
    "TaskHandle",
    "TaskInfo",
    "TaskResult",
    "TaskStatus",
    "UnknownTaskStatusError",
    "is_pollable",
]
