"""glinfer: span enumeration, batching and decoding for GLiNER-style models."""

from glinfer.config import InferenceConfig, OnnxFiles, RunConfig, SpecialTokens
from glinfer.errors import (
    ConfigurationError,
    GLiNERError,
    ModelNotFoundError,
    ValidationError,
)
from glinfer.models.base import ModelRuntime
from glinfer.registry import available_models, get_model, register_model
from glinfer.types import ClassificationResult, Entity, Word

# Import and register components
from glinfer import models  # noqa: F401

# Register all components
register_model("gliner1", models.GLiNER1Runtime)
register_model("gliner2", models.GLiNER2Runtime)

__all__ = [
    "ClassificationResult",
    "ConfigurationError",
    "Entity",
    "GLiNERError",
    "InferenceConfig",
    "ModelNotFoundError",
    "ModelRuntime",
    "OnnxFiles",
    "RunConfig",
    "SpecialTokens",
    "ValidationError",
    "Word",
    "available_models",
    "get_model",
    "register_model",
]
