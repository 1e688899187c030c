"""Менеджер AI-провайдеров.

ProviderManager — реестр "имя провайдера → экземпляр" с провайдером
по умолчанию. Не содержит логики протоколов: только регистрация и выбор.

Жизненный цикл:
1. При старте приложения менеджер создаётся и заполняется (add_provider)
2. Вызывается seal() — после этого реестр доступен только для чтения
3. Менеджер передаётся по ссылке туда, где нужна генерация

Пример использования:
    manager = ProviderManager()
    manager.add_provider(KieProvider(KieConfigs(api_key=...)), is_default=True)
    manager.add_provider(ReplicateProvider(ReplicateConfigs(api_token=...)))
    manager.seal()

    provider = manager.get_default_provider()
    result = await provider.generate(params)
"""

from mediagen.core.exceptions import (
    ProviderNotAvailableError,
    QueryNotSupportedError,
    RegistrySealedError,
)
from mediagen.providers.ai.base import (
    BaseAIProvider,
    MediaType,
    PollableAIProvider,
    is_pollable,
)
from mediagen.utils.logging import get_logger

logger = get_logger(__name__)


class ProviderManager:
    """Реестр AI-провайдеров с провайдером по умолчанию.

    Несколько провайдеров могут иметь одинаковое имя: поиск по имени
    возвращает первый зарегистрированный, а по умолчанию используется
    последний отмеченный is_default. Коллизий имён лучше избегать.
    """

    def __init__(self) -> None:
        self._providers: list[BaseAIProvider] = []
        self._default_provider: BaseAIProvider | None = None
        self._sealed = False

    @property
    def is_sealed(self) -> bool:
        """Проверить, закрыт ли реестр для изменений."""
        return self._sealed

    def add_provider(self, provider: BaseAIProvider, is_default: bool = False) -> None:
        """Добавить провайдер в реестр.

        Args:
            provider: Экземпляр провайдера.
            is_default: Сделать провайдер провайдером по умолчанию.

        Raises:
            RegistrySealedError: Реестр уже закрыт через seal().
        """
        if self._sealed:
            raise RegistrySealedError(
                f"Нельзя добавить провайдер '{provider.name}': реестр закрыт"
            )

        self._providers.append(provider)
        if is_default:
            self._default_provider = provider

        logger.debug(
            "Добавлен провайдер: %s (по умолчанию: %s)",
            provider.name,
            "да" if is_default else "нет",
        )

    def seal(self) -> None:
        """Закрыть реестр: дальнейшие add_provider() запрещены."""
        self._sealed = True
        logger.info(
            "Реестр провайдеров закрыт: %s",
            ", ".join(self.get_provider_names()) or "пусто",
        )

    def get_provider(self, name: str) -> BaseAIProvider | None:
        """Найти провайдер по имени (первое совпадение).

        Это только поиск: отсутствующий провайдер не создаётся.
        """
        for provider in self._providers:
            if provider.name == name:
                return provider
        return None

    def get_pollable_provider(self, name: str) -> PollableAIProvider:
        """Найти провайдер, который умеет опрашивать статус задач.

        Raises:
            ProviderNotAvailableError: Провайдер не зарегистрирован.
            QueryNotSupportedError: Провайдер работает только через webhook.
        """
        provider = self.get_provider(name)
        if provider is None:
            raise ProviderNotAvailableError(
                f"Провайдер '{name}' не зарегистрирован. "
                f"Доступные: {', '.join(self.get_provider_names()) or 'нет'}",
                provider_type=name,
            )
        if not is_pollable(provider):
            raise QueryNotSupportedError(
                f"Провайдер '{name}' не поддерживает опрос статуса задач",
                provider_type=name,
            )
        return provider

    def get_default_provider(self) -> BaseAIProvider | None:
        """Получить провайдер по умолчанию.

        Если провайдер по умолчанию не задан явно — используется первый
        зарегистрированный. Результат зависит от порядка регистрации.
        """
        if self._default_provider is not None:
            return self._default_provider
        if self._providers:
            return self._providers[0]
        return None

    def get_provider_names(self) -> list[str]:
        """Имена зарегистрированных провайдеров в порядке регистрации."""
        return [provider.name for provider in self._providers]

    def get_media_types(self) -> list[str]:
        """Все канонические типы медиа."""
        return [media_type.value for media_type in MediaType]

    async def aclose(self) -> None:
        """Закрыть HTTP-клиенты всех провайдеров.

        Вызовите при завершении работы приложения.
        """
        for provider in self._providers:
            await provider.close()
