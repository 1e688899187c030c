"""Базовый контракт для AI-провайдеров и каноническая модель задачи.

Этот модуль определяет:
- Общий словарь: типы медиа, параметры генерации, статусы задач
- Нормализованные результаты (песни, изображения)
- Абстрактный интерфейс, который реализуют все провайдеры

Каждый провайдер переводит канонический запрос в свой протокол,
запускает удалённую асинхронную задачу и потом приводит свой словарь
статусов к единой машине состояний TaskStatus.

Паттерн: Adapter (GoF) + Strategy
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel
from typing_extensions import TypeIs


class MediaType(StrEnum):
    """Типы медиа для генерации.

    Тип определяет, какую возможность провайдера мы используем
    и какие поля результата будут заполнены.
    """

    # Музыка (Suno через Kie) — результат: список Song
    MUSIC = "music"

    # Изображения (модели Replicate) — результат: список Image
    IMAGE = "image"

    VIDEO = "video"
    TEXT = "text"
    SPEECH = "speech"


class TaskStatus(StrEnum):
    """Канонический статус удалённой задачи.

    Машина состояний:
        PENDING -> PROCESSING -> {SUCCESS, FAILED}
        PENDING / PROCESSING -> CANCELED

    Переходы только вперёд: статус не может откатиться
    (например, SUCCESS -> PENDING запрещён).
    """

    # Задача принята провайдером, но ещё не запущена.
    # Единственный допустимый статус, который возвращает generate().
    PENDING = "pending"

    # Задача выполняется (для музыки — уже готов текст или первый трек)
    PROCESSING = "processing"

    # Генерация успешно завершена, результат готов
    SUCCESS = "success"

    # Генерация не удалась
    FAILED = "failed"

    # Генерация отменена пользователем или системой
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        """Проверить, является ли статус конечным."""
        return self in _TERMINAL_STATUSES

    def can_transition_to(self, other: TaskStatus) -> bool:
        """Проверить, допустим ли переход из текущего статуса в other.

        Повторное получение того же статуса допустимо (задача не изменилась).
        """
        if other is self:
            return True
        return other in _ALLOWED_TRANSITIONS[self]


_TERMINAL_STATUSES = frozenset(
    {TaskStatus.SUCCESS, TaskStatus.FAILED, TaskStatus.CANCELED}
)

_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset(
        {
            TaskStatus.PROCESSING,
            TaskStatus.SUCCESS,
            TaskStatus.FAILED,
            TaskStatus.CANCELED,
        }
    ),
    TaskStatus.PROCESSING: frozenset(
        {TaskStatus.SUCCESS, TaskStatus.FAILED, TaskStatus.CANCELED}
    ),
    TaskStatus.SUCCESS: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.CANCELED: frozenset(),
}


@dataclass(frozen=True)
class GenerateParams:
    """Канонические параметры генерации.

    Attributes:
        media_type: Тип медиа (music, image, ...).
        prompt: Текстовый промпт. Обязателен для всех провайдеров.
        model: ID модели на стороне провайдера. Если провайдеру нужна модель,
            а она не указана, провайдер подставляет модель по умолчанию
            (или отклоняет запрос, если умолчания нет).
        options: Опции конкретного провайдера. Провайдер валидирует их
            своей моделью опций и отклоняет неизвестные/некорректные поля.
        callback_url: URL для webhook-уведомления о завершении задачи.
        stream: Подсказка: вернуть поток (провайдерами не используется).
        is_async: Подсказка: асинхронная задача.
    """

    media_type: MediaType
    prompt: str
    model: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)
    callback_url: str | None = None
    stream: bool = False
    is_async: bool = True


@dataclass(frozen=True)
class Song:
    """Нормализованная песня (результат музыкальной генерации)."""

    audio_url: str
    image_url: str
    duration: float
    prompt: str
    title: str
    tags: str
    style: str
    id: str | None = None
    create_time: datetime | None = None
    model: str | None = None
    artist: str | None = None
    album: str | None = None


@dataclass(frozen=True)
class Image:
    """Нормализованное изображение."""

    image_url: str
    id: str | None = None
    create_time: datetime | None = None


@dataclass(frozen=True)
class TaskInfo:
    """Нормализованная информация о задаче.

    Attributes:
        songs: Песни (для MUSIC). Пустой кортеж, если результата нет.
        images: Изображения (для IMAGE). Пустой кортеж, если результата нет.
        status: Сырой статус провайдера (для диагностики).
        error_code: Код ошибки от провайдера.
        error_message: Сообщение об ошибке от провайдера.
        create_time: Время создания задачи на стороне провайдера.
    """

    songs: tuple[Song, ...] = ()
    images: tuple[Image, ...] = ()
    status: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    create_time: datetime | None = None


@dataclass(frozen=True)
class TaskResult:
    """Результат generate() или query().

    Каждый вызов query() возвращает новый TaskResult, старый не изменяется.

    Attributes:
        task_status: Канонический статус задачи.
        task_id: ID задачи на стороне провайдера. Уникален только в рамках
            провайдера — храните задачи по ключу (provider_name, task_id).
        task_info: Нормализованная информация о задаче.
        raw_result: Сырой ответ провайдера (для отладки).
    """

    task_status: TaskStatus
    task_id: str
    task_info: TaskInfo | None = None
    raw_result: dict[str, Any] | None = None

    @property
    def is_finished(self) -> bool:
        """Проверить, завершилась ли задача (успешно или нет)."""
        return self.task_status.is_terminal


@dataclass(frozen=True)
class TaskHandle:
    """Глобальный ключ задачи: (провайдер, ID задачи у провайдера)."""

    provider_name: str
    task_id: str


class BaseAIProvider(ABC):
    """Абстрактный базовый класс для AI-провайдеров.

    Определяет интерфейс, который должны реализовать все провайдеры.
    Провайдер без механизма опроса (только webhook) наследует этот класс
    напрямую. Провайдеры с опросом статуса наследуют PollableAIProvider.

    Для добавления нового провайдера:
    1. Создайте класс, наследующий BaseAIProvider или PollableAIProvider
    2. Задайте name и supported_media_types
    3. Реализуйте generate() (и query() для PollableAIProvider)
    """

    # Типы медиа, которые поддерживает провайдер
    supported_media_types: ClassVar[frozenset[MediaType]] = frozenset()

    # Может ли провайдер опрашивать статус задачи
    supports_query: ClassVar[bool] = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Название провайдера (для логов, ошибок и реестра).

        Примеры: "kie", "replicate".
        """

    @property
    @abstractmethod
    def configs(self) -> BaseModel:
        """Типизированная конфигурация провайдера."""

    def supports_media_type(self, media_type: MediaType) -> bool:
        """Проверить, поддерживает ли провайдер данный тип медиа."""
        return media_type in self.supported_media_types

    @abstractmethod
    async def generate(self, params: GenerateParams) -> TaskResult:
        """Запустить удалённую задачу генерации.

        Args:
            params: Канонические параметры генерации.

        Returns:
            TaskResult со статусом PENDING и непустым task_id.

        Raises:
            GenerationValidationError: Некорректные параметры (до запроса к API).
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: Ответ API не означает успех.
        """

    async def close(self) -> None:
        """Освободить ресурсы провайдера (HTTP-клиент)."""


class PollableAIProvider(BaseAIProvider):
    """Провайдер, который умеет опрашивать статус задачи."""

    supports_query: ClassVar[bool] = True

    @abstractmethod
    async def query(self, task_id: str) -> TaskResult:
        """Получить актуальное состояние задачи.

        Args:
            task_id: ID задачи, полученный из generate().

        Returns:
            Новый TaskResult с каноническим статусом и TaskInfo.

        Raises:
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: Ответ API не означает успех.
            UnknownTaskStatusError: Статус не входит в известный словарь.
        """


def is_pollable(provider: BaseAIProvider) -> TypeIs[PollableAIProvider]:
    """Проверить, можно ли опрашивать статус задач у провайдера."""
    return isinstance(provider, PollableAIProvider)
