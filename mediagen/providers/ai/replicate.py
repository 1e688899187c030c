"""Провайдер для Replicate API.

Replicate — платформа для запуска ML-моделей в облаке.
Модели запускаются асинхронно: создаём prediction, потом опрашиваем
его статус (или получаем webhook, если указан публичный callback URL).

Документация: https://replicate.com/docs/reference/http
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, JsonValue, SecretStr, TypeAdapter, ValidationError
from typing_extensions import override

from mediagen.config.models import REPLICATE_API_URL
from mediagen.core.exceptions import (
    GenerationValidationError,
    ProviderProtocolError,
    ProviderTransportError,
    UnknownTaskStatusError,
)
from mediagen.providers.ai.base import (
    GenerateParams,
    Image,
    MediaType,
    PollableAIProvider,
    TaskInfo,
    TaskResult,
    TaskStatus,
)
from mediagen.providers.ai.registry import register_provider
from mediagen.utils.logging import get_logger
from mediagen.utils.timezone import parse_timestamp

if TYPE_CHECKING:
    from mediagen.config.models import AIProvidersSettings

logger = get_logger(__name__)

PROVIDER_NAME = "replicate"

# Таймаут для HTTP-запросов (в секундах)
DEFAULT_TIMEOUT_SECONDS = 60.0

# События, по которым Replicate присылает webhook
WEBHOOK_EVENTS_FILTER = ["completed"]

# Хосты, до которых Replicate заведомо не достучится
LOCAL_HOST_MARKERS = ("localhost", "127.0.0.1")

# Маппинг статусов Replicate → канонические статусы
REPLICATE_STATUS_MAP: dict[str, TaskStatus] = {
    "starting": TaskStatus.PENDING,
    "processing": TaskStatus.PROCESSING,
    "succeeded": TaskStatus.SUCCESS,
    "failed": TaskStatus.FAILED,
    "canceled": TaskStatus.CANCELED,
}

# Параметры уходят в JSON-тело запроса, поэтому допускаются только JSON-значения
_INPUT_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


class ReplicateConfigs(BaseModel):
    """Конфигурация провайдера Replicate."""

    api_token: SecretStr
    base_url: str = REPLICATE_API_URL
    default_model: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    proxy_url: str | None = None


def map_replicate_status(raw_status: str) -> TaskStatus:
    """Перевести статус prediction в канонический статус.

    Raises:
        UnknownTaskStatusError: Статус не входит в известный словарь.
    """
    try:
        return REPLICATE_STATUS_MAP[raw_status]
    except KeyError:
        raise UnknownTaskStatusError(raw_status, provider=PROVIDER_NAME) from None


def is_webhook_eligible(callback_url: str | None) -> bool:
    """Проверить, можно ли передать callback URL в Replicate.

    URL передаётся только если он начинается с http:// или https://
    и не указывает на localhost / 127.0.0.1. Иначе webhook не регистрируется,
    а результат получают опросом.
    """
    if not callback_url:
        return False
    if not callback_url.startswith(("http://", "https://")):
        return False
    return not any(marker in callback_url for marker in LOCAL_HOST_MARKERS)


def build_prediction_input(prompt: str, options: Mapping[str, Any]) -> dict[str, Any]:
    """Собрать input для модели: промпт + опции.

    Опции добавляются после промпта и могут переопределить любые поля,
    кроме самого prompt.

    Raises:
        ValueError: В опциях передан ключ prompt.
    """
    if "prompt" in options:
        raise ValueError("Опции не могут переопределять prompt")
    return {"prompt": prompt, **options}


def normalize_output(output: object, created_at: datetime | None) -> tuple[Image, ...]:
    """Привести output prediction к списку изображений.

    output может отсутствовать, быть строкой (один URL) или списком URL.
    Все изображения получают время создания самой задачи: Replicate
    не отдаёт время для отдельных файлов.
    """
    if not output:
        return ()
    if isinstance(output, str):
        urls: list[Any] = [output]
    elif isinstance(output, list):
        urls = output
    else:
        return ()
    return tuple(
        Image(id="", create_time=created_at, image_url=str(url)) for url in urls
    )


class ReplicateProvider(PollableAIProvider):
    """Провайдер для Replicate API.

    Поддерживает генерацию изображений любой моделью Replicate:
    входные параметры модели передаются через options.

    Пример использования:
        provider = ReplicateProvider(ReplicateConfigs(api_token="r8_..."))

        result = await provider.generate(
            GenerateParams(
                media_type=MediaType.IMAGE,
                prompt="a cat in a hat",
                model="black-forest-labs/flux-schnell",
                options={"aspect_ratio": "1:1"},
                callback_url="https://example.com/api/webhooks/replicate",
            )
        )
    """

    supported_media_types = frozenset({MediaType.IMAGE})

    def __init__(
        self,
        configs: ReplicateConfigs,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Создать провайдер Replicate.

        Args:
            configs: Конфигурация провайдера.
            transport: Транспорт httpx (для тестов — httpx.MockTransport).
        """
        self._configs = configs
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    @override
    def name(self) -> str:
        """Название провайдера."""
        return PROVIDER_NAME

    @property
    @override
    def configs(self) -> ReplicateConfigs:
        """Конфигурация провайдера."""
        return self._configs

    def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать HTTP-клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._configs.base_url,
                headers={
                    "Authorization": f"Bearer {self._configs.api_token.get_secret_value()}",
                    "Content-Type": "application/json",
                },
                timeout=self._configs.timeout,
                proxy=self._configs.proxy_url,
                transport=self._transport,
            )
        return self._client

    @override
    async def close(self) -> None:
        """Закрыть HTTP-клиент."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @override
    async def generate(self, params: GenerateParams) -> TaskResult:
        """Создать prediction.

        Raises:
            GenerationValidationError: Не указаны модель или промпт,
                неподдерживаемый тип медиа, некорректные опции.
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: В ответе нет ID prediction.
        """
        model = params.model or self._configs.default_model

        if not model:
            raise GenerationValidationError(
                "Не указана модель",
                provider=self.name,
            )

        if not params.prompt:
            raise GenerationValidationError(
                "Не указан промпт",
                provider=self.name,
                model_id=model,
            )

        if not self.supports_media_type(params.media_type):
            raise GenerationValidationError(
                f"Replicate не поддерживает тип медиа: {params.media_type}",
                provider=self.name,
                model_id=model,
            )

        try:
            options = _INPUT_ADAPTER.validate_python(dict(params.options))
            input_data = build_prediction_input(params.prompt, options)
        except (ValidationError, ValueError) as e:
            raise GenerationValidationError(
                f"Некорректные опции Replicate: {e}",
                provider=self.name,
                model_id=model,
                original_error=e,
            ) from e

        # Replicate API поддерживает два способа запуска:
        # 1. POST /predictions с {"version": "abc123..."} — нужен хэш версии
        # 2. POST /models/{owner}/{name}/predictions — последняя версия модели
        payload: dict[str, Any]
        if ":" in model:
            version = model.split(":")[-1]
            payload = {"version": version, "input": input_data}
            endpoint = "/predictions"
        else:
            payload = {"input": input_data}
            endpoint = f"/models/{model}/predictions"

        if is_webhook_eligible(params.callback_url):
            payload["webhook"] = params.callback_url
            payload["webhook_events_filter"] = WEBHOOK_EVENTS_FILTER
        elif params.callback_url:
            logger.debug(
                "Callback URL не передан в Replicate (недоступен извне): %s",
                params.callback_url,
            )

        logger.debug(
            "Replicate generate: model=%s, prompt='%s', webhook=%s",
            model,
            params.prompt[:100],
            "да" if "webhook" in payload else "нет",
        )

        data = await self._request("POST", endpoint, model_id=model, json=payload)

        prediction_id = data.get("id")
        if not prediction_id:
            raise ProviderProtocolError(
                "Replicate не вернул prediction ID",
                provider=self.name,
                model_id=model,
            )

        logger.info("Создан prediction: id=%s, model=%s", prediction_id, model)

        return TaskResult(
            task_status=TaskStatus.PENDING,
            task_id=str(prediction_id),
            task_info=TaskInfo(),
            raw_result=data,
        )

    @override
    async def query(self, task_id: str) -> TaskResult:
        """Получить состояние prediction.

        Raises:
            GenerationValidationError: Пустой task_id.
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: В ответе нет статуса.
            UnknownTaskStatusError: Неизвестный статус prediction.
        """
        if not task_id:
            raise GenerationValidationError("Не указан task_id", provider=self.name)

        data = await self._request("GET", f"/predictions/{quote(task_id, safe='')}")

        raw_status = data.get("status")
        if not raw_status:
            raise ProviderProtocolError(
                f"Replicate не вернул статус prediction {task_id}",
                provider=self.name,
                model_id=data.get("model"),
            )

        task_status = map_replicate_status(raw_status)

        try:
            created_at = parse_timestamp(data.get("created_at"))
        except (TypeError, ValueError) as e:
            raise ProviderProtocolError(
                f"Replicate вернул некорректное время: {data.get('created_at')!r}",
                provider=self.name,
                model_id=data.get("model"),
                original_error=e,
            ) from e

        images = normalize_output(data.get("output"), created_at)
        error = data.get("error")

        logger.debug(
            "Prediction status: id=%s, status=%s, images=%d",
            task_id,
            raw_status,
            len(images),
        )

        return TaskResult(
            task_status=task_status,
            task_id=task_id,
            task_info=TaskInfo(
                images=images,
                status=raw_status,
                error_code="",
                error_message=str(error) if error is not None else None,
                create_time=created_at,
            ),
            raw_result=data,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        model_id: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Выполнить запрос к Replicate.

        Returns:
            JSON-объект ответа.
        """
        client = self._get_client()

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Replicate таймаут: %s %s", method, url)
            raise ProviderTransportError(
                "Таймаут запроса к Replicate",
                provider=self.name,
                model_id=model_id,
                is_retryable=True,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.exception("Replicate HTTP ошибка: %s %s", method, url)
            raise ProviderTransportError(
                f"Ошибка HTTP: {e}",
                provider=self.name,
                model_id=model_id,
                is_retryable=True,
                original_error=e,
            ) from e

        if not response.is_success:
            error_text = response.text
            logger.error(
                "Ошибка Replicate API: %s %s, status=%d, response=%s",
                method,
                url,
                response.status_code,
                error_text[:500],
            )
            raise ProviderTransportError(
                f"Replicate API вернул ошибку: {error_text[:200]}",
                provider=self.name,
                model_id=model_id,
                status_code=response.status_code,
                is_retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderProtocolError(
                "Replicate вернул ответ не в формате JSON",
                provider=self.name,
                model_id=model_id,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise ProviderProtocolError(
                "Replicate вернул ответ неожиданной структуры",
                provider=self.name,
                model_id=model_id,
            )

        return data


# ==============================================================================
# ФАБРИКА ПРОВАЙДЕРА
# ==============================================================================


class ReplicateProviderFactory:
    """Фабрика для создания провайдеров Replicate."""

    def create(
        self,
        settings: AIProvidersSettings,
        *,
        proxy_url: str | None = None,
        timeout: float | None = None,
        default_model: str | None = None,
    ) -> ReplicateProvider | None:
        """Создать провайдер если настроен API-токен."""
        if settings.replicate_api_token is None:
            return None

        return ReplicateProvider(
            ReplicateConfigs(
                api_token=settings.replicate_api_token,
                base_url=settings.replicate_base_url,
                default_model=default_model,
                timeout=timeout or DEFAULT_TIMEOUT_SECONDS,
                proxy_url=proxy_url,
            )
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРА
# ==============================================================================

# Replicate — платформа для запуска ML-моделей
# API-токен: AI__REPLICATE_API_TOKEN
register_provider(PROVIDER_NAME, ReplicateProviderFactory())
