"""Провайдер для Kie API (генерация музыки через Suno).

Kie запускает генерацию асинхронно:
1. POST /generate — создаём задачу, получаем taskId
2. GET /generate/record-info?taskId=... — опрашиваем статус и результат
   (или ждём callback на callBackUrl — приём webhook вне этого модуля)

Протокол имеет два уровня успеха: HTTP-статус 2xx И поле code == 200
в JSON-конверте {code, msg, data}.

Документация: https://docs.kie.ai/suno-api/generate-music
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from typing_extensions import override

from mediagen.config.models import KIE_API_URL
from mediagen.core.exceptions import (
    GenerationValidationError,
    ProviderProtocolError,
    ProviderTransportError,
    UnknownTaskStatusError,
)
from mediagen.providers.ai.base import (
    GenerateParams,
    MediaType,
    PollableAIProvider,
    Song,
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

PROVIDER_NAME = "kie"

# Модель Suno по умолчанию, если в запросе не указана
DEFAULT_MODEL = "V5"

# Значение поля code в конверте ответа, означающее успех
KIE_SUCCESS_CODE = 200

# Таймаут для HTTP-запросов (в секундах)
DEFAULT_TIMEOUT_SECONDS = 60.0

# Маппинг статусов Kie → канонические статусы.
# Любой статус вне этого словаря — ошибка, а не догадка.
KIE_STATUS_MAP: dict[str, TaskStatus] = {
    "PENDING": TaskStatus.PENDING,
    # Готов текст песни, аудио ещё генерируется
    "TEXT_SUCCESS": TaskStatus.PROCESSING,
    # Готов первый трек из двух
    "FIRST_SUCCESS": TaskStatus.PROCESSING,
    "SUCCESS": TaskStatus.SUCCESS,
    "CREATE_TASK_FAILED": TaskStatus.FAILED,
    "GENERATE_AUDIO_FAILED": TaskStatus.FAILED,
    "CALLBACK_EXCEPTION": TaskStatus.FAILED,
    "SENSITIVE_WORD_ERROR": TaskStatus.FAILED,
}


class KieConfigs(BaseModel):
    """Конфигурация провайдера Kie."""

    api_key: SecretStr
    base_url: str = KIE_API_URL
    default_model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    proxy_url: str | None = None


class KieMusicOptions(BaseModel):
    """Опции музыкальной генерации Kie.

    Принимаются как в camelCase (как в API), так и в snake_case.
    Неизвестные поля отклоняются.

    Attributes:
        custom_mode: Custom mode — title/style/lyrics задаются явно.
        instrumental: Без вокала.
        title: Название трека (custom mode).
        style: Стиль/жанр (custom mode).
        lyrics: Текст песни. В custom mode без instrumental именно он
            отправляется в поле prompt вместо канонического промпта.
        negative_tags: Стили, которых нужно избегать.
        vocal_gender: Пол вокала: "m" или "f".
        style_weight: Сила следования стилю (0..1).
        weirdness_constraint: Степень экспериментальности (0..1).
        audio_weight: Вес аудио-референса (0..1).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    custom_mode: bool = Field(default=False, alias="customMode")
    instrumental: bool | None = None
    title: str | None = None
    style: str | None = None
    lyrics: str | None = None
    negative_tags: str | None = Field(default=None, alias="negativeTags")
    vocal_gender: Literal["m", "f"] | None = Field(default=None, alias="vocalGender")
    style_weight: float | None = Field(default=None, ge=0, le=1, alias="styleWeight")
    weirdness_constraint: float | None = Field(
        default=None, ge=0, le=1, alias="weirdnessConstraint"
    )
    audio_weight: float | None = Field(default=None, ge=0, le=1, alias="audioWeight")


def map_kie_status(raw_status: str) -> TaskStatus:
    """Перевести статус Kie в канонический статус.

    Raises:
        UnknownTaskStatusError: Статус не входит в известный словарь.
    """
    try:
        return KIE_STATUS_MAP[raw_status]
    except KeyError:
        raise UnknownTaskStatusError(raw_status, provider=PROVIDER_NAME) from None


def build_music_payload(
    prompt: str,
    model: str,
    options: KieMusicOptions,
    callback_url: str | None = None,
) -> dict[str, Any]:
    """Собрать тело запроса POST /generate.

    Правило подстановки: в custom mode без instrumental в поле prompt
    уходит текст песни (lyrics), а не канонический промпт.

    Поля со значением None в тело не попадают.
    """
    payload: dict[str, Any] = {
        "prompt": prompt,
        "model": model,
        "callBackUrl": callback_url,
    }

    if options.custom_mode:
        payload["customMode"] = True
        payload["title"] = options.title
        payload["style"] = options.style
        payload["instrumental"] = options.instrumental
        if not options.instrumental:
            payload["prompt"] = options.lyrics
    else:
        payload["customMode"] = False
        payload["instrumental"] = options.instrumental

    # Дополнительные параметры тонкой настройки
    payload["negativeTags"] = options.negative_tags
    payload["vocalGender"] = options.vocal_gender
    payload["styleWeight"] = options.style_weight
    payload["weirdnessConstraint"] = options.weirdness_constraint
    payload["audioWeight"] = options.audio_weight

    return {key: value for key, value in payload.items() if value is not None}


class KieProvider(PollableAIProvider):
    """Провайдер для Kie API (Suno).

    Поддерживает только генерацию музыки (MediaType.MUSIC).

    Пример использования:
        provider = KieProvider(KieConfigs(api_key="..."))

        result = await provider.generate(
            GenerateParams(
                media_type=MediaType.MUSIC,
                prompt="lofi beat",
                options={"instrumental": True},
            )
        )
        # позже
        result = await provider.query(result.task_id)
    """

    supported_media_types = frozenset({MediaType.MUSIC})

    def __init__(
        self,
        configs: KieConfigs,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Создать провайдер Kie.

        HTTP-клиент создаётся лениво при первом запросе.

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
    def configs(self) -> KieConfigs:
        """Конфигурация провайдера."""
        return self._configs

    def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать HTTP-клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._configs.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._configs.api_key.get_secret_value()}",
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
        """Запустить генерацию музыки.

        Raises:
            GenerationValidationError: Неподдерживаемый тип медиа, пустой
                промпт или некорректные опции.
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: code != 200 или в ответе нет taskId.
        """
        if not self.supports_media_type(params.media_type):
            raise GenerationValidationError(
                f"Kie не поддерживает тип медиа: {params.media_type}",
                provider=self.name,
                model_id=params.model,
            )

        return await self._generate_music(params)

    async def _generate_music(self, params: GenerateParams) -> TaskResult:
        """Создать задачу генерации музыки."""
        model = params.model or self._configs.default_model

        if not params.prompt:
            raise GenerationValidationError(
                "Не указан промпт",
                provider=self.name,
                model_id=model,
            )

        options = self._parse_options(params, model)
        payload = build_music_payload(
            params.prompt,
            model,
            options,
            callback_url=params.callback_url,
        )

        logger.debug(
            "Kie generate: model=%s, custom_mode=%s, instrumental=%s, prompt='%s'",
            model,
            options.custom_mode,
            options.instrumental,
            str(payload.get("prompt", ""))[:100],
        )

        body = await self._request("POST", "/generate", model_id=model, json=payload)

        data = body.get("data")
        task_id = data.get("taskId") if isinstance(data, dict) else None
        if not task_id:
            raise ProviderProtocolError(
                "Kie не вернул taskId",
                provider=self.name,
                model_id=model,
            )

        logger.info("Kie задача создана: task_id=%s, model=%s", task_id, model)

        return TaskResult(
            task_status=TaskStatus.PENDING,
            task_id=str(task_id),
            task_info=TaskInfo(),
            raw_result=data,
        )

    def _parse_options(self, params: GenerateParams, model: str) -> KieMusicOptions:
        """Провалидировать опции запроса."""
        try:
            options = KieMusicOptions.model_validate(dict(params.options))
        except ValidationError as e:
            raise GenerationValidationError(
                f"Некорректные опции Kie: {e}",
                provider=self.name,
                model_id=model,
                original_error=e,
            ) from e

        if options.custom_mode and not options.instrumental and not options.lyrics:
            raise GenerationValidationError(
                "В custom mode без instrumental нужен текст песни (lyrics)",
                provider=self.name,
                model_id=model,
            )

        return options

    @override
    async def query(self, task_id: str) -> TaskResult:
        """Получить состояние задачи и готовые песни.

        Raises:
            GenerationValidationError: Пустой task_id.
            ProviderTransportError: HTTP-статус не 2xx или сбой сети.
            ProviderProtocolError: code != 200 или в ответе нет статуса.
            UnknownTaskStatusError: Неизвестный статус задачи.
        """
        if not task_id:
            raise GenerationValidationError("Не указан task_id", provider=self.name)

        body = await self._request(
            "GET",
            "/generate/record-info",
            params={"taskId": task_id},
        )

        data = body.get("data")
        if not isinstance(data, dict) or not data.get("status"):
            raise ProviderProtocolError(
                f"Kie не вернул статус задачи {task_id}",
                provider=self.name,
            )

        raw_status = data["status"]
        task_status = map_kie_status(raw_status)

        response = data.get("response") or {}
        suno_data = (response.get("sunoData") or []) if isinstance(response, dict) else None
        if not isinstance(suno_data, list):
            raise ProviderProtocolError(
                f"Kie вернул некорректный список песен для задачи {task_id}",
                provider=self.name,
            )
        songs = tuple(self._parse_song(item) for item in suno_data)

        error_code = data.get("errorCode")

        logger.debug(
            "Kie статус задачи: task_id=%s, status=%s, songs=%d",
            task_id,
            raw_status,
            len(songs),
        )

        return TaskResult(
            task_status=task_status,
            task_id=task_id,
            task_info=TaskInfo(
                songs=songs,
                status=raw_status,
                error_code=str(error_code) if error_code is not None else None,
                error_message=data.get("errorMessage"),
                create_time=self._parse_time(data.get("createTime")),
            ),
            raw_result=data,
        )

    def _parse_song(self, item: object) -> Song:
        """Перевести элемент sunoData в Song (modelName → model).

        Raises:
            ProviderProtocolError: Элемент не объект или длительность не число.
        """
        if not isinstance(item, dict):
            raise ProviderProtocolError(
                f"Kie вернул некорректную песню: {item!r}",
                provider=self.name,
            )
        try:
            duration = float(item.get("duration") or 0)
        except (TypeError, ValueError) as e:
            raise ProviderProtocolError(
                f"Kie вернул некорректную длительность: {item.get('duration')!r}",
                provider=self.name,
                original_error=e,
            ) from e

        return Song(
            id=item.get("id"),
            create_time=self._parse_time(item.get("createTime")),
            audio_url=item.get("audioUrl") or "",
            image_url=item.get("imageUrl") or "",
            duration=duration,
            prompt=item.get("prompt") or "",
            title=item.get("title") or "",
            tags=item.get("tags") or "",
            style=item.get("style") or "",
            model=item.get("modelName"),
            artist=item.get("artist"),
            album=item.get("album"),
        )

    def _parse_time(self, value: object) -> datetime | None:
        """Разобрать время из ответа Kie."""
        try:
            return parse_timestamp(value)
        except (TypeError, ValueError) as e:
            raise ProviderProtocolError(
                f"Kie вернул некорректное время: {value!r}",
                provider=self.name,
                original_error=e,
            ) from e

    async def _request(
        self,
        method: str,
        url: str,
        *,
        model_id: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Выполнить запрос к Kie и проверить оба уровня успеха.

        Returns:
            JSON-конверт {code, msg, data} с code == 200.
        """
        client = self._get_client()

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Kie таймаут: %s %s", method, url)
            raise ProviderTransportError(
                "Таймаут запроса к Kie",
                provider=self.name,
                model_id=model_id,
                is_retryable=True,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.exception("Kie HTTP ошибка: %s %s", method, url)
            raise ProviderTransportError(
                f"Ошибка HTTP: {e}",
                provider=self.name,
                model_id=model_id,
                is_retryable=True,
                original_error=e,
            ) from e

        if not response.is_success:
            logger.error(
                "Kie ошибка запроса: %s %s, status=%d, response=%s",
                method,
                url,
                response.status_code,
                response.text[:500],
            )
            raise ProviderTransportError(
                f"Запрос к Kie завершился со статусом {response.status_code}",
                provider=self.name,
                model_id=model_id,
                status_code=response.status_code,
                is_retryable=response.status_code >= 500,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderProtocolError(
                "Kie вернул ответ не в формате JSON",
                provider=self.name,
                model_id=model_id,
                original_error=e,
            ) from e

        if not isinstance(body, dict):
            raise ProviderProtocolError(
                "Kie вернул ответ неожиданной структуры",
                provider=self.name,
                model_id=model_id,
            )

        code = body.get("code")
        if code != KIE_SUCCESS_CODE:
            logger.error("Kie API вернул ошибку: code=%s, msg=%s", code, body.get("msg"))
            raise ProviderProtocolError(
                f"Kie API вернул ошибку (code={code}): {body.get('msg')}",
                provider=self.name,
                model_id=model_id,
            )

        return body


# ==============================================================================
# ФАБРИКА ПРОВАЙДЕРА
# ==============================================================================


class KieProviderFactory:
    """Фабрика для создания провайдеров Kie."""

    def create(
        self,
        settings: AIProvidersSettings,
        *,
        proxy_url: str | None = None,
        timeout: float | None = None,
        default_model: str | None = None,
    ) -> KieProvider | None:
        """Создать провайдер если настроен API-ключ."""
        if settings.kie_api_key is None:
            return None

        return KieProvider(
            KieConfigs(
                api_key=settings.kie_api_key,
                base_url=settings.kie_base_url,
                default_model=default_model or DEFAULT_MODEL,
                timeout=timeout or DEFAULT_TIMEOUT_SECONDS,
                proxy_url=proxy_url,
            )
        )


# ==============================================================================
# РЕГИСТРАЦИЯ ПРОВАЙДЕРА
# ==============================================================================

# Kie — генерация музыки (Suno API)
# API-ключ: AI__KIE_API_KEY
register_provider(PROVIDER_NAME, KieProviderFactory())
