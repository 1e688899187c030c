"""Модуль конфигурации.

Для загрузки настроек из окружения используйте:
    from mediagen.config.settings import load_settings

Для использования только классов настроек (без чтения .env):
    from mediagen.config.models import AIProvidersSettings
"""
