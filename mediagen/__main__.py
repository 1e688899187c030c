"""Entry point для запуска через python -m mediagen.

Запускает задачу генерации или опрашивает её статус один раз.
Результат печатается в stdout в виде JSON, логи пишутся в stderr.

Использование:
    python -m mediagen providers
    python -m mediagen generate --media-type music --prompt "lofi beat" \\
        --option instrumental=true
    python -m mediagen query --provider kie 5c79****be8e
"""

import argparse
import asyncio
import dataclasses
import json
import sys
from datetime import datetime
from typing import Any

from mediagen.config.settings import Settings, load_settings
from mediagen.core.exceptions import GenerationError, ProviderNotAvailableError
from mediagen.providers.ai import GenerateParams, MediaType, TaskHandle, TaskResult
from mediagen.services.generation_service import (
    GenerationService,
    create_generation_service,
)
from mediagen.utils.logging import setup_logging


def parse_option(raw: str) -> tuple[str, Any]:
    """Разобрать опцию вида key=value.

    Значение разбирается как JSON: true → bool, 0.5 → float, ["a"] → list.
    Всё, что не является JSON (16:9, V5), остаётся строкой.
    """
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Опция должна иметь вид key=value: {raw}")
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def _json_default(value: object) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def dump_result(result: TaskResult, handle: TaskHandle | None = None) -> str:
    """Сериализовать результат в JSON."""
    data: dict[str, Any] = {"task_result": dataclasses.asdict(result)}
    if handle is not None:
        data["task_handle"] = dataclasses.asdict(handle)
    return json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)


def build_parser() -> argparse.ArgumentParser:
    """Создать парсер аргументов командной строки."""
    parser = argparse.ArgumentParser(
        prog="mediagen",
        description="Запуск и опрос задач AI-генерации",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("providers", help="Показать зарегистрированные провайдеры")

    generate = subparsers.add_parser("generate", help="Запустить задачу генерации")
    generate.add_argument(
        "--media-type",
        type=MediaType,
        choices=list(MediaType),
        required=True,
        help="Тип медиа",
    )
    generate.add_argument("--prompt", required=True, help="Текстовый промпт")
    generate.add_argument("--provider", help="Имя провайдера (по умолчанию — дефолтный)")
    generate.add_argument("--model", help="ID модели на стороне провайдера")
    generate.add_argument(
        "--option",
        action="append",
        type=parse_option,
        default=[],
        metavar="KEY=VALUE",
        help="Опция провайдера (можно указать несколько раз)",
    )
    generate.add_argument("--callback-url", help="URL для webhook-уведомления")

    query = subparsers.add_parser("query", help="Получить состояние задачи")
    query.add_argument("--provider", required=True, help="Имя провайдера")
    query.add_argument("task_id", help="ID задачи у провайдера")

    return parser


async def run(args: argparse.Namespace, service: GenerationService) -> str:
    """Выполнить команду и вернуть текст для вывода."""
    manager = service.manager

    if args.command == "providers":
        default_provider = manager.get_default_provider()
        return json.dumps(
            {
                "providers": manager.get_provider_names(),
                "default": default_provider.name if default_provider else None,
                "media_types": manager.get_media_types(),
            },
            indent=2,
        )

    if args.command == "generate":
        params = GenerateParams(
            media_type=args.media_type,
            prompt=args.prompt,
            model=args.model,
            options=dict(args.option),
            callback_url=args.callback_url,
        )
        handle, result = await service.submit(params, provider_name=args.provider)
        return dump_result(result, handle)

    handle = TaskHandle(provider_name=args.provider, task_id=args.task_id)
    result = await service.refresh(handle)
    return dump_result(result, handle)


async def _main_async(args: argparse.Namespace, settings: Settings) -> int:
    service: GenerationService | None = None
    try:
        service = create_generation_service(settings)
        print(await run(args, service))
    except (GenerationError, ProviderNotAvailableError) as e:
        print(f"Ошибка: {e}", file=sys.stderr)
        return 1
    finally:
        if service is not None:
            await service.manager.aclose()
    return 0


def main() -> None:
    """Точка входа CLI."""
    args = build_parser().parse_args()

    settings = load_settings()
    setup_logging(
        level=settings.logging.level,
        timezone_name=settings.logging.timezone,
        log_file=settings.logging.file,
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(_main_async(args, settings)))


if __name__ == "__main__":
    main()
