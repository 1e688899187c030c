"""Модели настроек приложения.

Этот модуль содержит только классы настроек (Pydantic модели),
БЕЗ загрузки из переменных окружения. Это позволяет:
- Импортировать классы в тестах без побочных эффектов
- Создавать экземпляры с тестовыми данными
- Изолировать тесты от реальных переменных окружения

Для загрузки настроек из .env используйте модуль settings.py.
"""

from pydantic import BaseModel, SecretStr

# Базовые URL API провайдеров
KIE_API_URL = "https://api.kie.ai/api/v1"
REPLICATE_API_URL = "https://api.replicate.com/v1"


class LoggingSettings(BaseModel):
    """Настройки логирования."""

    level: str = "INFO"

    # Часовой пояс для отображения времени в логах.
    # Формат: строка из базы IANA (Europe/Moscow, UTC, America/New_York).
    timezone: str = "UTC"

    # Путь к файлу логов с ротацией.
    # Если не указан — логи пишутся только в консоль.
    file: str | None = None


class AIProvidersSettings(BaseModel):
    """Настройки AI-провайдеров.

    Поддерживаемые провайдеры:
    - Kie (https://kie.ai) — генерация музыки (Suno API)
    - Replicate (https://replicate.com) — платформа ML-моделей (изображения)

    Провайдер без ключа не регистрируется в менеджере.
    """

    # Kie API ключ.
    # Получить: https://kie.ai/api-key
    kie_api_key: SecretStr | None = None

    # Базовый URL Kie API (меняется только для тестов/прокси-шлюзов).
    kie_base_url: str = KIE_API_URL

    # Replicate API токен (формат: r8_...).
    # Получить: https://replicate.com/account/api-tokens
    replicate_api_token: SecretStr | None = None

    # Базовый URL Replicate API.
    replicate_base_url: str = REPLICATE_API_URL

    @property
    def has_kie(self) -> bool:
        """Проверить, настроен ли Kie."""
        return self.kie_api_key is not None

    @property
    def has_replicate(self) -> bool:
        """Проверить, настроен ли Replicate."""
        return self.replicate_api_token is not None
