"""Настройка логирования.

Поддерживает два канала вывода:
1. Консоль (stdout) — с цветной подсветкой уровней
2. Файл с ротацией — опционально, если указан путь

Компактный формат логов:
    25-01-07 21:55:46 | INFO | providers.ai.kie | Сообщение
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from typing_extensions import override

from mediagen.utils.timezone import get_timezone

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%y-%m-%d %H:%M:%S"

# Префикс пакета, который убирается из имени логгера для компактности
PACKAGE_PREFIX = "mediagen."


class AnsiColors:
    """ANSI escape-коды для цветного вывода в терминале."""

    RESET = "\033[0m"

    DEBUG = "\033[36m"  # Голубой (cyan)
    INFO = "\033[32m"  # Зелёный (green)
    WARNING = "\033[33m"  # Жёлтый (yellow)
    ERROR = "\033[31m"  # Красный (red)
    CRITICAL = "\033[35m"  # Пурпурный (magenta)


LEVEL_COLORS: dict[str, str] = {
    "DEBUG": AnsiColors.DEBUG,
    "INFO": AnsiColors.INFO,
    "WARNING": AnsiColors.WARNING,
    "ERROR": AnsiColors.ERROR,
    "CRITICAL": AnsiColors.CRITICAL,
}


class TimezoneFormatter(logging.Formatter):
    """Форматтер логов с поддержкой часового пояса.

    Также убирает префикс "mediagen." из имени логгера.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        timezone_name: str = "UTC",
    ) -> None:
        super().__init__(fmt, datefmt)
        self.timezone = get_timezone(timezone_name)

    @override
    def formatTime(
        self,
        record: logging.LogRecord,
        datefmt: str | None = None,
    ) -> str:
        dt = datetime.fromtimestamp(record.created, tz=self.timezone)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime(self.default_time_format)

    @override
    def format(self, record: logging.LogRecord) -> str:
        # mediagen.providers.ai.kie → providers.ai.kie
        original_name = record.name
        record.name = record.name.removeprefix(PACKAGE_PREFIX)
        try:
            return super().format(record)
        finally:
            record.name = original_name


class ColoredFormatter(TimezoneFormatter):
    """Форматтер логов с цветной подсветкой уровней.

    Цвета отображаются только в терминале с поддержкой ANSI-кодов.
    В файловом логе используйте обычный TimezoneFormatter.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        timezone_name: str = "UTC",
        use_colors: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt, timezone_name)
        self.use_colors = use_colors

    @override
    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if not self.use_colors:
            return formatted

        level_color = LEVEL_COLORS.get(record.levelname, "")
        if level_color:
            # "| INFO |" → "| \033[32mINFO\033[0m |"
            colored_level = f"{level_color}{record.levelname}{AnsiColors.RESET}"
            formatted = formatted.replace(
                f"| {record.levelname} |",
                f"| {colored_level} |",
            )

        return formatted


def _should_use_colors(stream: TextIO) -> bool:
    """Определить, поддерживает ли поток вывода цвета.

    Учитывает стандарт NO_COLOR (https://no-color.org/) и isatty() того
    потока, в который реально пишутся логи.
    """
    if os.environ.get("NO_COLOR"):
        return False
    return stream.isatty()


def setup_logging(
    level: str = "INFO",
    timezone_name: str = "UTC",
    log_file: Path | str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Настроить логирование приложения.

    Логи выводятся в консоль (с цветной подсветкой). Если указан log_file —
    дополнительно пишутся в файл с ротацией (5 МБ, 3 резервных копии).

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        timezone_name: Часовой пояс для отображения времени в логах.
        log_file: Путь к файлу логов (опционально).
        stream: Поток для консольного вывода (по умолчанию stdout).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    console_stream = stream or sys.stdout
    console_handler = logging.StreamHandler(console_stream)
    console_handler.setFormatter(
        ColoredFormatter(
            LOG_FORMAT,
            datefmt=DATE_FORMAT,
            timezone_name=timezone_name,
            use_colors=_should_use_colors(console_stream),
        )
    )
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5 МБ
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            TimezoneFormatter(
                LOG_FORMAT, datefmt=DATE_FORMAT, timezone_name=timezone_name
            )
        )
        root_logger.addHandler(file_handler)

    # httpx пишет каждый запрос на INFO — это шум
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Получить логгер с указанным именем.

    Args:
        name: Имя логгера (обычно __name__).

    Returns:
        Настроенный экземпляр логгера.
    """
    return logging.getLogger(name)
