"""
Lorm Model Registry — global registry for all concrete Model subclasses.

Lets foreign keys name their target by string (``fk="User"``); the name is
resolved the first time the relation is followed.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import Model

logger = logging.getLogger("lorm.models.registry")

__all__ = ["ModelRegistry"]


class ModelRegistry:
    """Global registry for all Model subclasses."""

    _models: Dict[str, Type[Model]] = {}

    @classmethod
    def register(cls, model_cls: Type[Model]) -> None:
        """Register a model class under its class name."""
        name = model_cls.__name__
        previous = cls._models.get(name)
        if previous is not None and previous is not model_cls:
            logger.warning(
                f"Model name '{name}' re-registered "
                f"({previous.__module__} -> {model_cls.__module__})"
            )
        cls._models[name] = model_cls

    @classmethod
    def get(cls, name: str) -> Optional[Type[Model]]:
        """Get model class by name."""
        return cls._models.get(name)

    @classmethod
    def all_models(cls) -> Dict[str, Type[Model]]:
        """Get all registered models."""
        return dict(cls._models)

    @classmethod
    def reset(cls) -> None:
        """Clear registry (for testing)."""
        cls._models.clear()
