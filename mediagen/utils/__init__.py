"""Вспомогательные модули.

Содержит утилиты для:
- Логирования (logging.py)
- Работы со временем и часовыми поясами (timezone.py)
"""
