"""Decode per-label classification logits."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from glinfer.decoding.scores import sigmoid, softmax
from glinfer.errors import ConfigurationError
from glinfer.types import ClassificationResult

DEFAULT_THRESHOLD = 0.5


def _as_logits(logits: np.ndarray, labels: Sequence[str]) -> np.ndarray:
    values = np.asarray(logits, dtype=np.float64).reshape(-1)
    if values.size < len(labels):
        raise ConfigurationError(
            f"Classifier returned {values.size} logits for {len(labels)} labels"
        )
    return values


def decode_single_label(
    logits: np.ndarray, labels: Sequence[str]
) -> ClassificationResult:
    """Return the arg-max label with its softmax probability.

    Ties go to the label that comes first.
    """
    probabilities = softmax(_as_logits(logits, labels))
    best_idx = int(np.argmax(probabilities[: len(labels)]))
    return {labels[best_idx]: float(probabilities[best_idx])}


def decode_multi_label(
    logits: np.ndarray, labels: Sequence[str], threshold: float = DEFAULT_THRESHOLD
) -> ClassificationResult:
    """Return every label whose sigmoid probability reaches ``threshold``."""
    probabilities = sigmoid(_as_logits(logits, labels))
    return {
        label: float(probabilities[idx])
        for idx, label in enumerate(labels)
        if probabilities[idx] >= threshold
    }


def decode_classification(
    logits: np.ndarray,
    labels: Sequence[str],
    multi_label: bool = False,
    threshold: float = DEFAULT_THRESHOLD,
) -> ClassificationResult:
    if multi_label:
        return decode_multi_label(logits, labels, threshold)
    return decode_single_label(logits, labels)
