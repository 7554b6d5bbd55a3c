"""GLiNER span-enumeration runtime (schema-prefixed inputs, one engine)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from glinfer.config import InferenceConfig
from glinfer.decoding.span_decoder import SpanDecoder
from glinfer.engine import Engine, HFTokenizer, OnnxEngine, Tokenizer, require_output
from glinfer.models.base import ModelRuntime
from glinfer.preprocessing.batching import Batch, BatchAssembler, SchemaPrefixedStrategy
from glinfer.types import Entity

logger = logging.getLogger(__name__)

ONNX_DIR = "onnx"
MODEL_FILE = "model.onnx"
OUTPUT_LOGITS = "logits"


class GLiNER1Runtime(ModelRuntime):
    """Runtime for models scoring a ``[batch, words, max_width, labels]`` lattice."""

    def __init__(
        self,
        tokenizer: Tokenizer,
        engine: Engine,
        config: InferenceConfig | None = None,
    ) -> None:
        super().__init__(config)
        self._engine = engine
        self._assembler = BatchAssembler(
            SchemaPrefixedStrategy(tokenizer), max_width=self.config.max_width
        )
        self._decoder = SpanDecoder(label_offset=SchemaPrefixedStrategy.label_offset)

    @property
    def name(self) -> str:
        return "gliner1"

    @property
    def supports_classification(self) -> bool:
        return False

    @classmethod
    def from_pretrained(
        cls,
        model_name_or_path: str,
        config: InferenceConfig | None = None,
        tokenizer_name_or_path: str | None = None,
        **session_kwargs: Any,
    ) -> "GLiNER1Runtime":
        """Load the tokenizer and ONNX graph of a local model.

        ``model_name_or_path`` may be the ``.onnx`` file itself or a model
        directory holding ``onnx/model.onnx``.
        """
        path = Path(model_name_or_path)
        onnx_path = path / ONNX_DIR / MODEL_FILE if path.is_dir() else path
        model_dir = path if path.is_dir() else path.parent

        engine = OnnxEngine.from_path(onnx_path, **session_kwargs)
        tokenizer = HFTokenizer.from_pretrained(tokenizer_name_or_path or str(model_dir))
        return cls(tokenizer, engine, config)

    def _extract_batch(
        self,
        texts: Sequence[str],
        labels: list[str],
        threshold: float,
        flat_ner: bool,
        multi_label: bool,
    ) -> list[list[Entity]]:
        batch = self._assembler.assemble(texts, labels)
        if batch.layout.num_positions == 0:
            return [[] for _ in texts]

        outputs = self._engine.run(self._build_feeds(batch))
        logits = require_output(outputs, OUTPUT_LOGITS)

        return self._decoder.decode(
            batch,
            texts,
            logits,
            threshold=threshold,
            flat_ner=flat_ner,
            multi_label=multi_label,
        )

    @staticmethod
    def _build_feeds(batch: Batch) -> dict[str, np.ndarray]:
        return {
            "input_ids": batch.input_ids.astype(np.int64),
            "attention_mask": batch.attention_mask.astype(np.int64),
            "words_mask": batch.words_mask.astype(np.int64),
            "text_lengths": batch.text_lengths.reshape(-1, 1).astype(np.int64),
            "span_idx": batch.span_idx.astype(np.int64),
            "span_mask": batch.span_mask.astype(bool),
        }
