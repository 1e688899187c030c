"""Централизованные исключения приложения.

Этот модуль содержит ВСЕ кастомные исключения проекта.
Удобный импорт: `from mediagen.core.exceptions import SomeError`

Организация исключений по доменам:
- AI Providers: ошибки провайдеров генерации (валидация, транспорт, протокол, статусы)
- Provider Manager: ошибки реестра провайдеров
- Generation Service: ошибки жизненного цикла задач
"""

from typing_extensions import override

# =============================================================================
# AI PROVIDER EXCEPTIONS
# =============================================================================
# Исключения для AI-провайдеров (Kie, Replicate).
# Иерархия: GenerationError -> Validation / Transport / Protocol / UnknownStatus.
# Вызывающий код различает вид ошибки по классу исключения.
# =============================================================================


class GenerationError(Exception):
    """Ошибка при генерации.

    Выбрасывается когда провайдер не может выполнить запрос.
    Содержит информацию для логирования и отображения пользователю.

    Attributes:
        message: Человекочитаемое описание ошибки.
        provider: Название провайдера (kie, replicate, и т.д.).
        model_id: ID модели, на которой произошла ошибка.
        is_retryable: Можно ли повторить запрос (True для временных ошибок).
        original_error: Оригинальное исключение от HTTP-клиента.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model_id: str | None = None,
        is_retryable: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        """Создать ошибку генерации.

        Args:
            message: Описание ошибки.
            provider: Название провайдера.
            model_id: ID модели (None если модель ещё не известна, например при query).
            is_retryable: Можно ли повторить запрос.
            original_error: Оригинальное исключение.
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model_id = model_id
        self.is_retryable = is_retryable
        self.original_error = original_error

    @override
    def __str__(self) -> str:
        """Строковое представление ошибки."""
        return f"[{self.provider}:{self.model_id or '-'}] {self.message}"


class GenerationValidationError(GenerationError):
    """Некорректный запрос на генерацию.

    Возникает ДО любого сетевого запроса:
    - не указан промпт или модель
    - провайдер не поддерживает тип медиа
    - опции провайдера имеют неверный формат

    Повторять такой запрос бессмысленно.
    """


class ProviderTransportError(GenerationError):
    """Ошибка транспорта: HTTP-статус не 2xx или сбой сети.

    Attributes:
        status_code: HTTP-статус ответа (None для сетевых ошибок и таймаутов).
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model_id: str | None = None,
        status_code: int | None = None,
        is_retryable: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            provider=provider,
            model_id=model_id,
            is_retryable=is_retryable,
            original_error=original_error,
        )
        self.status_code = status_code


class ProviderProtocolError(GenerationError):
    """Ошибка протокола провайдера.

    HTTP-запрос прошёл успешно, но ответ не означает успех:
    - внутренний код ответа отличается от ожидаемого
    - в ответе нет обязательного поля (taskId, status)
    - тело ответа не является JSON
    """


class UnknownTaskStatusError(GenerationError):
    """Провайдер вернул статус задачи, которого нет в известном словаре.

    Неизвестный статус никогда не приводится к PENDING/FAILED молча:
    он может означать новый режим сбоя в API провайдера.

    Attributes:
        raw_status: Сырой статус от провайдера.
    """

    def __init__(
        self,
        raw_status: object,
        *,
        provider: str,
        model_id: str | None = None,
    ) -> None:
        super().__init__(
            f"Неизвестный статус задачи: {raw_status!r}",
            provider=provider,
            model_id=model_id,
        )
        self.raw_status = raw_status


# =============================================================================
# PROVIDER MANAGER EXCEPTIONS
# =============================================================================
# Исключения реестра провайдеров: поиск, регистрация, возможности.
# =============================================================================


class ProviderNotAvailableError(Exception):
    """Провайдер недоступен или не зарегистрирован.

    Возникает когда:
    - Провайдер не зарегистрирован в реестре
    - API-ключ для провайдера не настроен

    Attributes:
        message: Описание ошибки.
        provider_type: Тип провайдера, который недоступен.
    """

    def __init__(self, message: str, provider_type: str | None = None) -> None:
        """Создать исключение ProviderNotAvailableError.

        Args:
            message: Описание ошибки.
            provider_type: Тип провайдера (опционально).
        """
        self.message = message
        self.provider_type = provider_type
        super().__init__(message)


class QueryNotSupportedError(ProviderNotAvailableError):
    """Провайдер не умеет опрашивать статус задачи.

    Такие провайдеры доставляют результат только через webhook.
    """


class RegistrySealedError(Exception):
    """Попытка изменить реестр провайдеров после seal().

    Реестр заполняется один раз при старте приложения
    и дальше доступен только для чтения.
    """


# =============================================================================
# GENERATION SERVICE EXCEPTIONS
# =============================================================================


class TaskStatusRegressionError(Exception):
    """Статус задачи откатился назад (например, SUCCESS -> PENDING).

    Attributes:
        provider: Название провайдера.
        task_id: ID задачи на стороне провайдера.
        previous: Предыдущий канонический статус.
        current: Новый канонический статус.
    """

    def __init__(
        self,
        *,
        provider: str,
        task_id: str,
        previous: str,
        current: str,
    ) -> None:
        self.provider = provider
        self.task_id = task_id
        self.previous = previous
        self.current = current
        super().__init__(
            f"Недопустимый переход статуса задачи {provider}:{task_id}: "
            f"{previous} -> {current}"
        )
