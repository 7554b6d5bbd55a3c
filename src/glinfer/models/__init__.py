"""Model runtime abstractions."""

from glinfer.models.base import ModelRuntime
from glinfer.models.gliner1 import GLiNER1Runtime
from glinfer.models.gliner2 import GLiNER2Runtime

__all__ = [
    "ModelRuntime",
    "GLiNER1Runtime",
    "GLiNER2Runtime",
]
