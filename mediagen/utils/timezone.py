"""Утилиты для работы со временем и часовыми поясами.

Провайдеры отдают время создания задачи в разных форматах:
- Kie: миллисекунды Unix-эпохи (число) или ISO-строка
- Replicate: ISO 8601 с суффиксом "Z" и микросекундами

Все значения приводятся к timezone-aware datetime в UTC.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def get_timezone(timezone_name: str) -> ZoneInfo:
    """Получить объект часового пояса по имени.

    Args:
        timezone_name: Название часового пояса из базы IANA.
            Примеры: "Europe/Moscow", "UTC", "America/New_York".

    Returns:
        Объект ZoneInfo для указанного часового пояса.

    Raises:
        ZoneInfoNotFoundError: Если указанный часовой пояс не найден.
    """
    return ZoneInfo(timezone_name)


def ensure_utc_aware(dt: datetime) -> datetime:
    """Гарантировать, что datetime является timezone-aware в UTC.

    Naive datetime считается UTC, aware конвертируется в UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Разобрать время создания задачи из ответа провайдера.

    Поддерживаемые форматы:
    - int/float — миллисекунды Unix-эпохи (1735689600000)
    - строка из цифр — то же самое, но строкой
    - ISO 8601 строка ("2025-01-01T00:00:00.123456Z")
    - None / пустая строка — None

    Args:
        value: Сырое значение из JSON.

    Returns:
        Время в UTC или None, если значение отсутствует.

    Raises:
        ValueError: Строка не является ни числом, ни ISO 8601.
        TypeError: Значение неподдерживаемого типа.
    """
    if value is None or value == "":
        return None

    # bool — подкласс int, но временем не является
    if isinstance(value, bool):
        raise TypeError(f"Некорректное время: {value!r}")

    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, tz=UTC)

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=UTC)
        # fromisoformat понимает "Z" начиная с Python 3.11
        return ensure_utc_aware(datetime.fromisoformat(text))

    raise TypeError(f"Некорректное время: {value!r}")
