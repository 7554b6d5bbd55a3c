"""Tokenizer and tensor-engine capabilities consumed by the runtimes.

The runtimes only depend on the two protocols below. ``HFTokenizer`` and
``OnnxEngine`` are thin adapters for the usual Hugging Face tokenizer and ONNX
Runtime session; any object with the same methods works.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Protocol

import numpy as np

from glinfer.errors import ConfigurationError, ModelNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CLS_TOKEN_ID = 1
DEFAULT_SEP_TOKEN_ID = 2


class Tokenizer(Protocol):
    cls_token_id: int
    sep_token_id: int

    def encode(self, text: str, add_special_tokens: bool = False) -> list[int]:
        ...


class Engine(Protocol):
    def run(self, feeds: Mapping[str, np.ndarray]) -> Mapping[str, np.ndarray]:
        ...


class HFTokenizer:
    """Adapter exposing a ``transformers`` tokenizer as a :class:`Tokenizer`."""

    def __init__(self, tokenizer: Any):
        self._tokenizer = tokenizer

    @classmethod
    def from_pretrained(cls, model_name_or_path: str, **kwargs: Any) -> "HFTokenizer":
        from transformers import AutoTokenizer

        return cls(AutoTokenizer.from_pretrained(model_name_or_path, **kwargs))

    @property
    def cls_token_id(self) -> int:
        token_id = getattr(self._tokenizer, "cls_token_id", None)
        return DEFAULT_CLS_TOKEN_ID if token_id is None else int(token_id)

    @property
    def sep_token_id(self) -> int:
        token_id = getattr(self._tokenizer, "sep_token_id", None)
        return DEFAULT_SEP_TOKEN_ID if token_id is None else int(token_id)

    def encode(self, text: str, add_special_tokens: bool = False) -> list[int]:
        ids = self._tokenizer.encode(text, add_special_tokens=add_special_tokens)
        return [int(token_id) for token_id in ids]


class OnnxEngine:
    """Adapter exposing an ``onnxruntime.InferenceSession`` as an :class:`Engine`."""

    def __init__(self, session: Any):
        self._session = session
        self._output_names = [output.name for output in session.get_outputs()]

    @classmethod
    def from_path(cls, path: str | Path, **session_kwargs: Any) -> "OnnxEngine":
        path = Path(path)
        if not path.is_file():
            raise ModelNotFoundError(f"Model not found: {path}")

        import onnxruntime as ort

        logger.info("Loading ONNX model from %s", path)
        return cls(ort.InferenceSession(str(path), **session_kwargs))

    def run(self, feeds: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        values = self._session.run(None, dict(feeds))
        return dict(zip(self._output_names, values))


def require_output(outputs: Mapping[str, np.ndarray], name: str) -> np.ndarray:
    """Return the named engine output or fail with :class:`ConfigurationError`."""
    if name not in outputs:
        raise ConfigurationError(
            f"Model output missing {name}. Available: {list(outputs.keys())}"
        )
    return np.asarray(outputs[name])


def first_output(outputs: Mapping[str, np.ndarray]) -> np.ndarray:
    """Return the first engine output for single-output graphs."""
    for value in outputs.values():
        return np.asarray(value)
    raise ConfigurationError("Model returned no outputs")
