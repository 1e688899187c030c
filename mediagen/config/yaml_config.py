"""Загрузчик YAML-конфигурации провайдеров.

Этот модуль загружает и валидирует config.yaml — файл с настройками,
которые можно менять без изменения кода:
- Какие провайдеры регистрировать и в каком порядке
- Какой провайдер используется по умолчанию
- Модели по умолчанию для провайдеров
- Таймаут HTTP-запросов

Пример config.yaml:
    providers:
      - name: kie
        default: true
      - name: replicate
    default_models:
      kie: V5
    timeout: 60
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class ProviderEntry(BaseModel):
    """Запись о провайдере в config.yaml."""

    name: str = Field(description="Тип провайдера из реестра фабрик (kie, replicate)")
    default: bool = Field(
        default=False,
        description="Использовать провайдер по умолчанию",
    )
    enabled: bool = Field(
        default=True,
        description="Регистрировать ли провайдер",
    )


class YamlConfig(BaseModel):
    """Главная YAML-конфигурация.

    Порядок записей в providers определяет порядок регистрации,
    а значит и провайдер по умолчанию, если ни один не отмечен явно.
    """

    providers: list[ProviderEntry] = Field(
        default_factory=lambda: [ProviderEntry(name="kie"), ProviderEntry(name="replicate")]
    )
    default_models: dict[str, str] = Field(
        default_factory=dict,
        description="Модель по умолчанию для провайдера (если в запросе не указана)",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Таймаут HTTP-запросов к провайдерам в секундах",
    )

    @field_validator("providers", mode="before")
    @classmethod
    def parse_providers(cls, v: Any) -> Any:
        """Разрешить короткую запись: список имён вместо списка словарей.

        В YAML можно написать:
            providers: [kie, replicate]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v

    def get_enabled_providers(self) -> list[ProviderEntry]:
        """Получить включённые провайдеры в порядке определения в конфиге."""
        return [entry for entry in self.providers if entry.enabled]

    def get_default_model(self, provider: str) -> str | None:
        """Получить модель по умолчанию для провайдера."""
        return self.default_models.get(provider)


def load_yaml_config(path: Path | str = "config.yaml") -> YamlConfig:
    """Загрузить и валидировать YAML-конфигурацию.

    Args:
        path: Путь к файлу конфигурации.

    Returns:
        Валидированный объект конфигурации (значения по умолчанию,
        если файла нет).

    Raises:
        yaml.YAMLError: Некорректный YAML.
        pydantic.ValidationError: Некорректная конфигурация.
    """
    config_path = Path(path)

    if not config_path.exists():
        return YamlConfig()

    with config_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return YamlConfig.model_validate(data)
