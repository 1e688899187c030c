"""Тесты для загрузки и валидации YAML-конфигурации."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from mediagen.config.yaml_config import ProviderEntry, YamlConfig, load_yaml_config


def write_config(tmp_path: Path, content: str) -> Path:
    """Записать config.yaml во временную директорию."""
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    """Тест: без файла используются значения по умолчанию."""
    config = load_yaml_config(tmp_path / "nope.yaml")

    assert [entry.name for entry in config.providers] == ["kie", "replicate"]
    assert config.default_models == {}
    assert config.timeout == 60.0


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    """Тест: пустой файл — то же, что отсутствующий."""
    config = load_yaml_config(write_config(tmp_path, ""))

    assert [entry.name for entry in config.providers] == ["kie", "replicate"]


def test_full_config(tmp_path: Path) -> None:
    """Тест: полная запись провайдеров, моделей и таймаута."""
    path = write_config(
        tmp_path,
        """
providers:
  - name: replicate
    default: true
  - name: kie
    enabled: false
default_models:
  kie: V4_5
  replicate: black-forest-labs/flux-schnell
timeout: 30
""",
    )

    config = load_yaml_config(path)

    assert config.providers == [
        ProviderEntry(name="replicate", default=True),
        ProviderEntry(name="kie", enabled=False),
    ]
    assert [entry.name for entry in config.get_enabled_providers()] == ["replicate"]
    assert config.get_default_model("kie") == "V4_5"
    assert config.get_default_model("missing") is None
    assert config.timeout == 30.0


def test_short_provider_list(tmp_path: Path) -> None:
    """Тест: короткая запись providers: [kie, replicate]."""
    config = load_yaml_config(write_config(tmp_path, "providers: [replicate, kie]\n"))

    assert [entry.name for entry in config.providers] == ["replicate", "kie"]
    assert all(entry.enabled and not entry.default for entry in config.providers)


def test_null_providers(tmp_path: Path) -> None:
    """Тест: providers: null — ни одного провайдера."""
    config = load_yaml_config(write_config(tmp_path, "providers:\n"))

    assert config.providers == []


@pytest.mark.parametrize("timeout", [0, -5])
def test_invalid_timeout(timeout: int) -> None:
    """Тест: таймаут должен быть положительным."""
    with pytest.raises(ValidationError):
        YamlConfig(timeout=timeout)


def test_invalid_yaml(tmp_path: Path) -> None:
    """Тест: некорректный YAML — ошибка парсера."""
    with pytest.raises(yaml.YAMLError):
        load_yaml_config(write_config(tmp_path, "providers: [kie\n"))
