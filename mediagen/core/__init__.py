"""Ядро: общие исключения приложения."""
