"""Base batch strategy abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from glinfer.engine import Tokenizer
from glinfer.preprocessing.spans import SpanLattice
from glinfer.preprocessing.words import WordSplitter
from glinfer.types import Word


@dataclass
class SchemaEncoding:
    """Label tokens shared by every example of a batch."""

    ids: list[int] = field(default_factory=list)
    label_positions: list[int] = field(default_factory=list)


@dataclass
class TextEncoding:
    """Sub-token encoding of one example."""

    input_ids: list[int]
    words_mask: list[int]
    first_token_positions: list[int]


class BatchStrategy(ABC):
    """Base class for the ways a model family lays out its input tokens.

    A strategy decides:
    - Where the label tokens live (inside every row, or in a separate schema)
    - How each word is turned into sub-tokens
    - Which units span index pairs refer to (words or sub-tokens)
    """

    # Key of the first label in the id-to-class map.
    label_offset: int = 0

    def __init__(self, tokenizer: Tokenizer, splitter: WordSplitter):
        self.tokenizer = tokenizer
        self.splitter = splitter

    def encode_word(self, word: str) -> list[int]:
        return list(self.tokenizer.encode(word, add_special_tokens=False))

    @abstractmethod
    def encode_schema(self, labels: Sequence[str]) -> SchemaEncoding:
        """Encode the label tokens shared by the batch.

        Args:
            labels: Label names in caller order

        Returns:
            Shared schema encoding (empty when labels are encoded per row)
        """
        pass

    @abstractmethod
    def encode_text(self, words: Sequence[Word], labels: Sequence[str]) -> TextEncoding:
        """Encode the words of one example.

        Args:
            words: Words of the example
            labels: Label names in caller order

        Returns:
            Token ids, word-boundary mask and first sub-token of every word
        """
        pass

    def span_indices(self, lattice: SpanLattice, encoding: TextEncoding) -> np.ndarray:
        """Map a word lattice to the span index pairs fed to the engine."""
        return lattice.pairs()
