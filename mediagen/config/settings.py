"""Настройки приложения через переменные окружения.

Для использования только классов настроек (без чтения .env)
импортируйте из mediagen.config.models вместо этого модуля.

Переменные окружения (вложенность через "__"):
    AI__KIE_API_KEY=...
    AI__REPLICATE_API_TOKEN=r8_...
    LOGGING__LEVEL=DEBUG
    PROXY=http://proxy.example.com:8080
    CONFIG_PATH=config.yaml
"""

import sys
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from mediagen.config.models import AIProvidersSettings, LoggingSettings

__all__ = [
    "AIProvidersSettings",
    "LoggingSettings",
    "Settings",
    "load_settings",
]

# Файл .env ищется в текущей рабочей директории.
# Если его нет — используются только переменные окружения.
ENV_FILE = Path(".env")

# Сообщение по умолчанию для ошибок конфигурации
DEFAULT_ERROR_MESSAGE = "Ошибка конфигурации. Проверьте файл .env или переменные окружения"


class Settings(BaseSettings):
    """Главные настройки приложения.

    Настройки загружаются из двух источников (в порядке приоритета):
    1. Переменные окружения (приоритет выше)
    2. Файл .env (если существует)
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        # AI__KIE_API_KEY= в .env означает "ключ не задан"
        env_ignore_empty=True,
        extra="ignore",
    )

    ai: AIProvidersSettings = AIProvidersSettings()
    logging: LoggingSettings = LoggingSettings()

    # URL прокси-сервера для запросов к AI-провайдерам (опционально).
    # Формат: http://host:port, https://host:port, socks5://host:port
    proxy: str | None = None

    # Путь к YAML-конфигурации провайдеров.
    config_path: str = "config.yaml"


def _format_validation_error(error: ValidationError) -> str:
    """Преобразовать ошибку Pydantic в понятное русское сообщение.

    Args:
        error: Ошибка валидации от Pydantic.

    Returns:
        Понятное сообщение на русском языке.
    """
    messages: list[str] = [DEFAULT_ERROR_MESSAGE]

    for err in error.errors():
        field_path = ".".join(str(loc) for loc in err["loc"])
        messages.append(f"Поле: {field_path}")
        messages.append(f"Тип ошибки: {err['type']}")
        messages.append(f"Сообщение: {err['msg']}")

    return "\n".join(messages)


def load_settings() -> Settings:
    """Загрузить настройки из переменных окружения.

    Если настройки некорректны — выводит понятную ошибку на русском
    и завершает программу.

    Returns:
        Объект Settings с загруженными настройками.
    """
    try:
        return Settings()
    except ValidationError as e:
        print(_format_validation_error(e), file=sys.stderr)
        sys.exit(1)
