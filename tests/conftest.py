"""Общие фикстуры для всех тестов.

Этот файл содержит pytest-фикстуры, которые используются во всех тестах:
- Журнал HTTP-запросов и httpx.MockTransport вместо реальной сети
- Фейковые провайдеры для тестов менеджера, сервиса и CLI
"""

from collections.abc import Callable

import httpx
import pytest
from pydantic import BaseModel
from typing_extensions import override

from mediagen.providers.ai.base import (
    BaseAIProvider,
    GenerateParams,
    MediaType,
    PollableAIProvider,
    TaskInfo,
    TaskResult,
    TaskStatus,
)

Handler = Callable[[httpx.Request], httpx.Response]


class FakeConfigs(BaseModel):
    """Конфигурация фейкового провайдера."""

    label: str = "fake"


class FakeProvider(BaseAIProvider):
    """Провайдер без опроса статуса (только webhook)."""

    supported_media_types = frozenset({MediaType.TEXT})

    def __init__(self, name: str = "fake", result: TaskResult | None = None) -> None:
        self._name = name
        self.result = result or TaskResult(
            task_status=TaskStatus.PENDING,
            task_id="task-1",
            task_info=TaskInfo(),
        )
        self.generate_calls: list[GenerateParams] = []
        self.closed = False

    @property
    @override
    def name(self) -> str:
        return self._name

    @property
    @override
    def configs(self) -> FakeConfigs:
        return FakeConfigs(label=self._name)

    @override
    async def generate(self, params: GenerateParams) -> TaskResult:
        self.generate_calls.append(params)
        return self.result

    @override
    async def close(self) -> None:
        self.closed = True


class FakePollableProvider(PollableAIProvider):
    """Провайдер с опросом: query() отдаёт заранее заданные результаты по очереди."""

    supported_media_types = frozenset({MediaType.TEXT})

    def __init__(
        self,
        name: str = "fake-poll",
        results: list[TaskResult] | None = None,
    ) -> None:
        self._name = name
        self.results = list(results or [])
        self.query_calls: list[str] = []
        self.closed = False

    @property
    @override
    def name(self) -> str:
        return self._name

    @property
    @override
    def configs(self) -> FakeConfigs:
        return FakeConfigs(label=self._name)

    @override
    async def generate(self, params: GenerateParams) -> TaskResult:
        return TaskResult(task_status=TaskStatus.PENDING, task_id="task-1")

    @override
    async def query(self, task_id: str) -> TaskResult:
        self.query_calls.append(task_id)
        return self.results.pop(0)

    @override
    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def captured_requests() -> list[httpx.Request]:
    """Журнал запросов, прошедших через mock_transport."""
    return []


@pytest.fixture
def mock_transport(
    captured_requests: list[httpx.Request],
) -> Callable[[Handler], httpx.MockTransport]:
    """Фабрика httpx.MockTransport, записывающая каждый запрос в журнал.

    Пример:
        transport = mock_transport(lambda request: httpx.Response(200, json={...}))
        provider = KieProvider(configs, transport=transport)
    """

    def _make(handler: Handler) -> httpx.MockTransport:
        def _handle(request: httpx.Request) -> httpx.Response:
            captured_requests.append(request)
            return handler(request)

        return httpx.MockTransport(_handle)

    return _make


@pytest.fixture
def fake_provider() -> Callable[..., FakeProvider]:
    """Фабрика провайдеров без опроса статуса."""
    return FakeProvider


@pytest.fixture
def fake_pollable_provider() -> Callable[..., FakePollableProvider]:
    """Фабрика провайдеров с опросом статуса."""
    return FakePollableProvider
