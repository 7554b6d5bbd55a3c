"""Base model runtime abstraction.

A ModelRuntime turns texts and label names into entities or label scores,
delegating the numeric work to an external engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Sequence

from glinfer.config import InferenceConfig
from glinfer.errors import ValidationError
from glinfer.types import ClassificationResult, Entity


def validate_text(text: str) -> None:
    if not text or not text.strip():
        raise ValidationError("Text cannot be empty")


def validate_texts(texts: Sequence[str]) -> None:
    if len(texts) == 0:
        raise ValidationError("Texts cannot be empty")


def validate_labels(labels: Sequence[str]) -> None:
    if len(labels) == 0:
        raise ValidationError("Labels cannot be empty")


def validate_threshold(threshold: float | None) -> None:
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        raise ValidationError(f"Threshold must be within [0, 1], got {threshold}")


def iter_chunks(texts: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for offset in range(0, len(texts), size):
        yield texts[offset : offset + size]


class ModelRuntime(ABC):
    """Base class for all model runtimes.

    A model runtime:
    - Validates caller input before touching the tokenizer or engine
    - Exposes `supports_classification` property
    - Implements batched entity extraction, and classification if supported
    """

    def __init__(self, config: InferenceConfig | None = None):
        self.config = config or InferenceConfig()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the model family name."""
        pass

    @property
    @abstractmethod
    def supports_classification(self) -> bool:
        """Whether this model family can classify texts."""
        pass

    @abstractmethod
    def _extract_batch(
        self,
        texts: Sequence[str],
        labels: list[str],
        threshold: float,
        flat_ner: bool,
        multi_label: bool,
    ) -> list[list[Entity]]:
        """Extract entities from one chunk of already validated texts.

        Args:
            texts: At most ``config.batch_size`` texts
            labels: Label names
            threshold: Minimum span probability
            flat_ner: Disallow nested entities
            multi_label: Allow several labels per span

        Returns:
            One entity list per text, in input order
        """
        pass

    def _classify_batch(
        self,
        texts: Sequence[str],
        labels: list[str],
        threshold: float,
        multi_label: bool,
    ) -> list[ClassificationResult]:
        raise NotImplementedError(f"{self.name} does not support classification")

    def extract_entities(
        self,
        text: str,
        labels: Sequence[str],
        threshold: float | None = None,
        flat_ner: bool | None = None,
        multi_label: bool | None = None,
    ) -> list[Entity]:
        """Extract entities of the given labels from one text."""
        validate_text(text)
        validate_labels(labels)
        return self.extract_entities_batch(
            [text], labels, threshold=threshold, flat_ner=flat_ner, multi_label=multi_label
        )[0]

    def extract_entities_batch(
        self,
        texts: Sequence[str],
        labels: Sequence[str],
        threshold: float | None = None,
        flat_ner: bool | None = None,
        multi_label: bool | None = None,
    ) -> list[list[Entity]]:
        """Extract entities from several texts, preserving input order."""
        validate_texts(texts)
        validate_labels(labels)
        validate_threshold(threshold)

        results: list[list[Entity]] = []
        for chunk in iter_chunks(list(texts), self.config.batch_size):
            results.extend(
                self._extract_batch(
                    chunk,
                    list(labels),
                    threshold=self.config.threshold if threshold is None else threshold,
                    flat_ner=self.config.flat_ner if flat_ner is None else flat_ner,
                    multi_label=self.config.multi_label if multi_label is None else multi_label,
                )
            )
        return results

    def classify(
        self,
        text: str,
        labels: Sequence[str],
        threshold: float | None = None,
        multi_label: bool = False,
    ) -> ClassificationResult:
        """Score ``labels`` against one text."""
        validate_text(text)
        validate_labels(labels)
        return self.classify_batch(
            [text], labels, threshold=threshold, multi_label=multi_label
        )[0]

    def classify_batch(
        self,
        texts: Sequence[str],
        labels: Sequence[str],
        threshold: float | None = None,
        multi_label: bool = False,
    ) -> list[ClassificationResult]:
        """Score ``labels`` against several texts, preserving input order."""
        if not self.supports_classification:
            raise NotImplementedError(f"{self.name} does not support classification")
        validate_texts(texts)
        validate_labels(labels)
        validate_threshold(threshold)

        results: list[ClassificationResult] = []
        for chunk in iter_chunks(list(texts), self.config.batch_size):
            results.extend(
                self._classify_batch(
                    chunk,
                    list(labels),
                    threshold=self.config.threshold if threshold is None else threshold,
                    multi_label=multi_label,
                )
            )
        return results
