"""Провайдеры внешних сервисов."""
