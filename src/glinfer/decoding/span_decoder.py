"""Decode span scores into candidate entities.

Two score shapes are supported:

- a flat ``[batch, position, width, label]`` logit tensor, decoded by stride
  arithmetic against the batch's :class:`~glinfer.layout.ScoreLayout`
- a dense ``[span, label]`` probability matrix with an explicit word-span
  table, as produced by dot-product scoring
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from glinfer.decoding.overlap import greedy_search
from glinfer.decoding.scores import sigmoid
from glinfer.errors import ConfigurationError
from glinfer.layout import ScoreLayout
from glinfer.preprocessing.batching import Batch
from glinfer.types import Entity, Word

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5
LABEL_ID_OFFSET = 1


def decode_span_logits(
    logits: np.ndarray,
    layout: ScoreLayout,
    texts: Sequence[str],
    char_starts: Sequence[Sequence[int]],
    char_ends: Sequence[Sequence[int]],
    id_to_class: Mapping[int, str],
    threshold: float = DEFAULT_THRESHOLD,
    label_offset: int = LABEL_ID_OFFSET,
) -> list[list[Entity]]:
    """Turn a flat span logit tensor into per-example candidates.

    Args:
        logits: Raw scores, any shape, ``layout.size`` elements in
            ``[batch, position, width, label]`` order
        layout: Dimensions the batch was assembled with
        texts: Original texts, one per example
        char_starts: Character start offset of every word, per example
        char_ends: Character end offset of every word, per example
        id_to_class: Label map of the batch
        threshold: Minimum sigmoid probability
        label_offset: Key of the first label in ``id_to_class``

    Returns:
        One list of (possibly overlapping) candidates per example
    """
    flat = np.asarray(logits).reshape(-1)
    if flat.size != layout.size:
        raise ConfigurationError(
            f"Span logits have {flat.size} elements, expected {layout.size} "
            f"for layout {layout.shape}"
        )

    candidates: list[list[Entity]] = [[] for _ in range(layout.batch_size)]
    if layout.size == 0:
        return candidates

    probs = sigmoid(flat)
    hits = np.flatnonzero(probs >= threshold)
    batch_idx, start_idx, width_idx, label_idx = layout.unravel(hits)
    end_idx = start_idx + width_idx

    dropped = 0
    for flat_idx, b, start, end, label in zip(
        hits.tolist(),
        batch_idx.tolist(),
        start_idx.tolist(),
        end_idx.tolist(),
        label_idx.tolist(),
    ):
        starts = char_starts[b]
        ends = char_ends[b]
        if start >= len(starts) or end >= len(ends):
            dropped += 1
            continue

        start_char = starts[start]
        end_char = ends[end]
        candidates[b].append(
            Entity(
                text=texts[b][start_char:end_char],
                label=id_to_class[label + label_offset],
                start=start_char,
                end=end_char,
                score=float(probs[flat_idx]),
            )
        )

    if dropped:
        logger.debug("Dropped %d above-threshold cells outside their example", dropped)
    return candidates


def dot_product_scores(span_rep: np.ndarray, label_rep: np.ndarray) -> np.ndarray:
    """Score every span against every label: ``sigmoid(span_rep @ label_rep.T)``.

    Args:
        span_rep: ``(num_spans, hidden)`` span representations
        label_rep: ``(num_labels, hidden)`` label representations

    Returns:
        ``(num_spans, num_labels)`` probabilities
    """
    span_rep = np.asarray(span_rep, dtype=np.float64)
    label_rep = np.asarray(label_rep, dtype=np.float64)
    return sigmoid(span_rep @ label_rep.T)


def decode_dense_scores(
    scores: np.ndarray,
    word_spans: np.ndarray,
    span_mask: np.ndarray,
    words: Sequence[Word],
    text: str,
    labels: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> list[Entity]:
    """Turn a ``[span, label]`` probability matrix into candidates for one text.

    Args:
        scores: ``(num_spans, num_labels)`` probabilities
        word_spans: ``(num_spans, 2)`` start/end word of every span
        span_mask: ``(num_spans,)`` validity of every span
        words: Words of the text, giving character offsets
        text: Original text
        labels: Label names, column order of ``scores``
        threshold: Minimum probability

    Returns:
        Candidates, possibly overlapping
    """
    scores = np.asarray(scores, dtype=np.float64)
    if scores.ndim != 2 or scores.shape != (len(word_spans), len(labels)):
        raise ConfigurationError(
            f"Span scores have shape {scores.shape}, expected "
            f"({len(word_spans)}, {len(labels)})"
        )

    word_count = len(words)
    candidates: list[Entity] = []
    dropped = 0
    for span_idx, label_idx in zip(*np.nonzero(scores >= threshold)):
        if not span_mask[span_idx]:
            continue
        start_word, end_word = (int(v) for v in word_spans[span_idx])
        if start_word >= word_count or end_word >= word_count:
            dropped += 1
            continue

        start_char = words[start_word].start
        end_char = words[end_word].end
        candidates.append(
            Entity(
                text=text[start_char:end_char],
                label=labels[label_idx],
                start=start_char,
                end=end_char,
                score=float(scores[span_idx, label_idx]),
            )
        )

    if dropped:
        logger.debug("Dropped %d above-threshold cells outside their example", dropped)
    return candidates


class SpanDecoder:
    """Decoder for span-enumeration models.

    Output shape: ``[batch, words, max_width, labels]``.
    """

    def __init__(self, label_offset: int = LABEL_ID_OFFSET):
        self.label_offset = label_offset

    def decode(
        self,
        batch: Batch,
        texts: Sequence[str],
        logits: np.ndarray,
        threshold: float = DEFAULT_THRESHOLD,
        flat_ner: bool = True,
        multi_label: bool = False,
    ) -> list[list[Entity]]:
        """Decode logits and resolve overlaps for every example of ``batch``."""
        char_starts, char_ends = batch.char_offsets()
        candidates = decode_span_logits(
            logits,
            batch.layout,
            texts,
            char_starts,
            char_ends,
            batch.id_to_class,
            threshold=threshold,
            label_offset=self.label_offset,
        )
        return [
            greedy_search(example, flat_ner=flat_ner, multi_label=multi_label)
            for example in candidates
        ]
