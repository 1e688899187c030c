"""mediagen — AI-провайдеры генерации и жизненный цикл удалённых задач.

Основной API находится в mediagen.providers.ai.
"""

__version__ = "0.1.0"
