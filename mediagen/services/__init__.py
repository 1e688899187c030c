"""Сервисы бизнес-логики."""

from mediagen.services.generation_service import (
    GenerationService,
    build_provider_manager,
    create_generation_service,
)

__all__ = [
    "GenerationService",
    "build_provider_manager",
    "create_generation_service",
]
