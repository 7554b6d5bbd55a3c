"""Registry for model runtimes."""

from typing import Type

from glinfer.models.base import ModelRuntime


# Registries
_models: dict[str, Type[ModelRuntime]] = {}


def register_model(name: str, model_class: Type[ModelRuntime]) -> None:
    """Register a model runtime class.

    Args:
        name: Model family name
        model_class: ModelRuntime class
    """
    _models[name] = model_class


def get_model(name: str) -> Type[ModelRuntime]:
    """Get a model runtime class by name.

    Args:
        name: Model family name

    Returns:
        ModelRuntime class

    Raises:
        KeyError: If model not found
    """
    if name not in _models:
        raise KeyError(f"Model '{name}' not found. Available: {list(_models.keys())}")
    return _models[name]


def available_models() -> list[str]:
    return sorted(_models)
