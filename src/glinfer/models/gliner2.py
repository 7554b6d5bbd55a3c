"""GLiNER2 runtime (schema and text channels, four engines).

Entity extraction:
- encode ``schema + text`` tokens and pick the label marker states
- build span representations from the text states of the word lattice
- score spans against transformed label states by dot product

Classification feeds the label marker states to a classifier head.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np

from glinfer.config import InferenceConfig, OnnxFiles, SpecialTokens
from glinfer.decoding.classification import decode_classification
from glinfer.decoding.overlap import greedy_search
from glinfer.decoding.span_decoder import decode_dense_scores, dot_product_scores
from glinfer.engine import Engine, HFTokenizer, OnnxEngine, Tokenizer, first_output
from glinfer.errors import ModelNotFoundError
from glinfer.models.base import ModelRuntime
from glinfer.preprocessing.batching import (
    CLASSIFICATION_TASK_NAME,
    NER_TASK_NAME,
    BatchAssembler,
    ParallelChannelStrategy,
)
from glinfer.types import ClassificationResult, Entity

logger = logging.getLogger(__name__)

INPUT_IDS = "input_ids"
ATTENTION_MASK = "attention_mask"
HIDDEN_STATE = "hidden_state"
HIDDEN_STATES = "hidden_states"
SPAN_START_IDX = "span_start_idx"
SPAN_END_IDX = "span_end_idx"
LABEL_EMBEDDINGS = "label_embeddings"


class GLiNER2Runtime(ModelRuntime):
    """Runtime for schema-conditioned span scoring and classification.

    The exported graphs take a batch dimension of 1, so every row of an
    assembled batch is fed on its own, trimmed to its true token length.

    Overlaps are resolved across labels: with ``flat_ner=True`` an entity
    overlapping a higher-scoring entity is dropped even when their labels
    differ. Pass ``flat_ner=False`` to keep nested entities.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        special_tokens: SpecialTokens | Mapping[str, int],
        encoder: Engine,
        span_rep: Engine,
        count_embed: Engine,
        classifier: Engine | None = None,
        config: InferenceConfig | None = None,
    ) -> None:
        super().__init__(config)
        if not isinstance(special_tokens, SpecialTokens):
            special_tokens = SpecialTokens.model_validate(special_tokens)

        self.special_tokens = special_tokens
        self._encoder = encoder
        self._span_rep = span_rep
        self._count_embed = count_embed
        self._classifier = classifier

        self._ner_assembler = BatchAssembler(
            ParallelChannelStrategy(
                tokenizer,
                prompt_token_id=special_tokens.prompt,
                label_token_id=special_tokens.entity,
                sep_text_token_id=special_tokens.sep_text,
                task_name=NER_TASK_NAME,
            ),
            max_width=self.config.max_width,
        )
        self._cls_assembler = BatchAssembler(
            ParallelChannelStrategy(
                tokenizer,
                prompt_token_id=special_tokens.prompt,
                label_token_id=special_tokens.label,
                sep_text_token_id=special_tokens.sep_text,
                task_name=CLASSIFICATION_TASK_NAME,
            ),
            max_width=self.config.max_width,
        )

    @property
    def name(self) -> str:
        return "gliner2"

    @property
    def supports_classification(self) -> bool:
        return self._classifier is not None

    @classmethod
    def from_pretrained(
        cls,
        model_name_or_path: str,
        special_tokens: SpecialTokens | Mapping[str, int],
        onnx_files: OnnxFiles | Mapping[str, str] | None = None,
        config: InferenceConfig | None = None,
        tokenizer_name_or_path: str | None = None,
        **session_kwargs: Any,
    ) -> "GLiNER2Runtime":
        """Load the tokenizer and the four ONNX graphs of a local model."""
        model_dir = Path(model_name_or_path)
        if not model_dir.is_dir():
            raise ModelNotFoundError(f"Model directory not found: {model_dir}")

        if onnx_files is None:
            onnx_files = OnnxFiles()
        elif not isinstance(onnx_files, OnnxFiles):
            onnx_files = OnnxFiles.model_validate(onnx_files)

        def load(file_name: str) -> OnnxEngine:
            return OnnxEngine.from_path(model_dir / file_name, **session_kwargs)

        engines = {
            "encoder": load(onnx_files.encoder),
            "span_rep": load(onnx_files.span_rep),
            "count_embed": load(onnx_files.count_embed),
            "classifier": load(onnx_files.classifier),
        }
        tokenizer = HFTokenizer.from_pretrained(tokenizer_name_or_path or str(model_dir))
        return cls(tokenizer, special_tokens, config=config, **engines)

    def _extract_batch(
        self,
        texts: Sequence[str],
        labels: list[str],
        threshold: float,
        flat_ner: bool,
        multi_label: bool,
    ) -> list[list[Entity]]:
        batch = self._ner_assembler.assemble(texts, labels)
        schema_length = len(batch.schema_ids)

        results: list[list[Entity]] = []
        for row, text in enumerate(texts):
            word_count = int(batch.text_lengths[row])
            token_count = int(batch.token_lengths[row])
            if word_count == 0 or token_count == 0:
                results.append([])
                continue

            hidden = self._encode(
                np.concatenate([batch.schema_ids, batch.input_ids[row, :token_count]])
            )
            label_embeddings = hidden[batch.label_positions]
            text_hidden = hidden[schema_length:]

            span_count = word_count * self.config.max_width
            span_rep = self._span_representations(
                text_hidden, batch.span_idx[row, :span_count]
            )
            label_rep = self._transform_labels(label_embeddings)
            scores = dot_product_scores(span_rep, label_rep)

            candidates = decode_dense_scores(
                scores,
                batch.word_span_idx[row, :span_count],
                batch.span_mask[row, :span_count],
                batch.words[row],
                text,
                labels,
                threshold=threshold,
            )
            results.append(
                greedy_search(candidates, flat_ner=flat_ner, multi_label=multi_label)
            )

        return results

    def _classify_batch(
        self,
        texts: Sequence[str],
        labels: list[str],
        threshold: float,
        multi_label: bool,
    ) -> list[ClassificationResult]:
        batch = self._cls_assembler.assemble(texts, labels)

        results: list[ClassificationResult] = []
        for row in range(batch.batch_size):
            token_count = int(batch.token_lengths[row])
            hidden = self._encode(
                np.concatenate([batch.schema_ids, batch.input_ids[row, :token_count]])
            )
            label_embeddings = hidden[batch.label_positions].astype(np.float32)
            outputs = self._classifier.run({HIDDEN_STATE: label_embeddings})
            results.append(
                decode_classification(
                    first_output(outputs),
                    labels,
                    multi_label=multi_label,
                    threshold=threshold,
                )
            )
        return results

    def _encode(self, token_ids: np.ndarray) -> np.ndarray:
        """Return ``(seq_len, hidden)`` encoder states for one token row."""
        input_ids = np.asarray(token_ids, dtype=np.int64).reshape(1, -1)
        logger.debug("Encoding %d tokens", input_ids.shape[1])
        outputs = self._encoder.run(
            {INPUT_IDS: input_ids, ATTENTION_MASK: np.ones_like(input_ids)}
        )
        return first_output(outputs).reshape(input_ids.shape[1], -1)

    def _span_representations(self, text_hidden: np.ndarray, spans: np.ndarray) -> np.ndarray:
        outputs = self._span_rep.run(
            {
                HIDDEN_STATES: text_hidden[np.newaxis].astype(np.float32),
                SPAN_START_IDX: spans[np.newaxis, :, 0].astype(np.int64),
                SPAN_END_IDX: spans[np.newaxis, :, 1].astype(np.int64),
            }
        )
        return first_output(outputs).reshape(len(spans), -1)

    def _transform_labels(self, label_embeddings: np.ndarray) -> np.ndarray:
        outputs = self._count_embed.run(
            {LABEL_EMBEDDINGS: label_embeddings.astype(np.float32)}
        )
        return first_output(outputs).reshape(len(label_embeddings), -1)
