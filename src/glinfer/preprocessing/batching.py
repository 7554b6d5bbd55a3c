"""Batch assembly for span-based models.

Texts are split into words, encoded into sub-tokens by a
:class:`~glinfer.preprocessing.base.BatchStrategy`, paired with a span lattice
and right-padded into rectangular arrays. The true number of words and tokens
of every example is kept next to the padded arrays.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from glinfer.engine import Tokenizer
from glinfer.layout import ScoreLayout
from glinfer.preprocessing.base import BatchStrategy, SchemaEncoding, TextEncoding
from glinfer.preprocessing.spans import SpanLattice, generate_spans
from glinfer.preprocessing.words import (
    WHITESPACE_TOKEN_PATTERN,
    WORD_PATTERN,
    WordSplitter,
)
from glinfer.types import Word

logger = logging.getLogger(__name__)

PAD_VALUE = 0

ENTITY_MARKER = "<<ENT>>"
SEPARATOR_MARKER = "<<SEP>>"

SCHEMA_OPEN = "("
SCHEMA_CLOSE = ")"
NER_TASK_NAME = "entities"
CLASSIFICATION_TASK_NAME = "category"


@dataclass
class Batch:
    """Padded model inputs plus the metadata needed to decode the outputs."""

    input_ids: np.ndarray  # (B, T) int64
    attention_mask: np.ndarray  # (B, T) int64
    words_mask: np.ndarray  # (B, T) int64
    text_lengths: np.ndarray  # (B,) int64, words per example
    token_lengths: np.ndarray  # (B,) int64, real tokens per example
    span_idx: np.ndarray  # (B, S, 2) int64, in strategy units
    word_span_idx: np.ndarray  # (B, S, 2) int64, in words
    span_mask: np.ndarray  # (B, S) bool
    id_to_class: dict[int, str]
    words: list[list[Word]]
    layout: ScoreLayout
    schema_ids: np.ndarray  # (P,) int64, empty for schema-prefixed rows
    label_positions: list[int]

    @property
    def batch_size(self) -> int:
        return len(self.words)

    def char_offsets(self) -> tuple[list[list[int]], list[list[int]]]:
        """Per-example character start and end offsets of every word."""
        starts = [[word.start for word in words] for words in self.words]
        ends = [[word.end for word in words] for words in self.words]
        return starts, ends


def pad_sequences(
    sequences: Sequence[Sequence[int]] | Sequence[np.ndarray],
    pad_value: int = PAD_VALUE,
    dtype: type = np.int64,
) -> np.ndarray:
    """Right-pad variable-length sequences into a ``(B, max_len)`` array."""
    max_length = max((len(seq) for seq in sequences), default=0)
    padded = np.full((len(sequences), max_length), pad_value, dtype=dtype)
    for row, seq in enumerate(sequences):
        if len(seq):
            padded[row, : len(seq)] = seq
    return padded


def pad_span_sequences(
    spans: Sequence[np.ndarray], pad_value: int = PAD_VALUE
) -> np.ndarray:
    """Right-pad ``(S_i, 2)`` span arrays into a ``(B, max_S, 2)`` array."""
    max_length = max((len(span) for span in spans), default=0)
    padded = np.full((len(spans), max_length, 2), pad_value, dtype=np.int64)
    for row, span in enumerate(spans):
        if len(span):
            padded[row, : len(span)] = span
    return padded


class SchemaPrefixedStrategy(BatchStrategy):
    """Labels are written as a prompt in front of every example.

    Row layout: ``[CLS] <<ENT>> label ... <<SEP>> word ... [SEP]``. Prompt
    tokens are masked out of the word-boundary mask; the first sub-token of
    each text word carries a 1-based running word counter.
    """

    label_offset = 1

    def __init__(self, tokenizer: Tokenizer, splitter: WordSplitter | None = None):
        super().__init__(tokenizer, splitter or WordSplitter(WHITESPACE_TOKEN_PATTERN))

    def encode_schema(self, labels: Sequence[str]) -> SchemaEncoding:
        return SchemaEncoding()

    @staticmethod
    def prompt_words(labels: Sequence[str]) -> list[str]:
        prompt: list[str] = []
        for label in labels:
            prompt.extend([ENTITY_MARKER, label])
        prompt.append(SEPARATOR_MARKER)
        return prompt

    def encode_text(self, words: Sequence[Word], labels: Sequence[str]) -> TextEncoding:
        input_ids = [self.tokenizer.cls_token_id]
        words_mask = [PAD_VALUE]
        first_token_positions: list[int] = []

        for prompt_word in self.prompt_words(labels):
            token_ids = self.encode_word(prompt_word)
            input_ids.extend(token_ids)
            words_mask.extend([PAD_VALUE] * len(token_ids))

        word_counter = 1
        for word in words:
            token_ids = self.encode_word(word.text)
            first_token_positions.append(len(input_ids))
            for token_idx, token_id in enumerate(token_ids):
                input_ids.append(token_id)
                if token_idx == 0:
                    words_mask.append(word_counter)
                    word_counter += 1
                else:
                    words_mask.append(PAD_VALUE)

        input_ids.append(self.tokenizer.sep_token_id)
        words_mask.append(PAD_VALUE)

        return TextEncoding(
            input_ids=input_ids,
            words_mask=words_mask,
            first_token_positions=first_token_positions,
        )


class ParallelChannelStrategy(BatchStrategy):
    """Labels live in a schema prefix encoded once, apart from the text rows.

    Schema layout: ``( [P] task ( [E] label ... ) ) [SEP_TEXT]``. Text rows
    hold only the sub-tokens of the words, lowercased at encoding time so word
    offsets keep pointing into the original text. Span index pairs point at
    the first sub-token of the start and end words.
    """

    label_offset = 0

    def __init__(
        self,
        tokenizer: Tokenizer,
        prompt_token_id: int,
        label_token_id: int,
        sep_text_token_id: int,
        task_name: str = NER_TASK_NAME,
        splitter: WordSplitter | None = None,
    ):
        super().__init__(tokenizer, splitter or WordSplitter(WORD_PATTERN))
        self.prompt_token_id = prompt_token_id
        self.label_token_id = label_token_id
        self.sep_text_token_id = sep_text_token_id
        self.task_name = task_name

    def encode_schema(self, labels: Sequence[str]) -> SchemaEncoding:
        open_ids = self.encode_word(SCHEMA_OPEN)
        ids = [*open_ids, self.prompt_token_id]
        ids.extend(self.encode_word(self.task_name))
        ids.extend(open_ids)

        label_positions: list[int] = []
        for label in labels:
            label_positions.append(len(ids))
            ids.append(self.label_token_id)
            ids.extend(self.encode_word(label))

        close_ids = self.encode_word(SCHEMA_CLOSE)
        ids.extend(close_ids)
        ids.extend(close_ids)
        ids.append(self.sep_text_token_id)

        return SchemaEncoding(ids=ids, label_positions=label_positions)

    def encode_text(self, words: Sequence[Word], labels: Sequence[str]) -> TextEncoding:
        input_ids: list[int] = []
        words_mask: list[int] = []
        first_token_positions: list[int] = []

        for word_counter, word in enumerate(words, start=1):
            token_ids = self.encode_word(word.text.lower())
            first_token_positions.append(len(input_ids))
            input_ids.extend(token_ids)
            words_mask.extend(
                word_counter if token_idx == 0 else PAD_VALUE
                for token_idx in range(len(token_ids))
            )

        return TextEncoding(
            input_ids=input_ids,
            words_mask=words_mask,
            first_token_positions=first_token_positions,
        )

    def span_indices(self, lattice: SpanLattice, encoding: TextEncoding) -> np.ndarray:
        if not len(lattice):
            return np.zeros((0, 2), dtype=np.int64)
        positions = np.asarray(encoding.first_token_positions, dtype=np.int64)
        return np.stack([positions[lattice.starts], positions[lattice.ends]], axis=-1)


class BatchAssembler:
    """Build a padded :class:`Batch` from raw texts and label names."""

    def __init__(self, strategy: BatchStrategy, max_width: int):
        if max_width < 1:
            raise ValueError(f"max_width must be >= 1, got {max_width}")
        self.strategy = strategy
        self.max_width = max_width

    def assemble(self, texts: Sequence[str], labels: Sequence[str]) -> Batch:
        """Encode ``texts`` against ``labels``.

        Empty texts are not rejected here; they become rows with zero words
        and zero spans.
        """
        schema = self.strategy.encode_schema(labels)

        batch_words: list[list[Word]] = []
        encodings: list[TextEncoding] = []
        span_idxs: list[np.ndarray] = []
        word_span_idxs: list[np.ndarray] = []
        span_masks: list[np.ndarray] = []

        for text in texts:
            words = list(self.strategy.splitter.split(text))
            encoding = self.strategy.encode_text(words, labels)
            lattice = generate_spans(len(words), self.max_width)

            batch_words.append(words)
            encodings.append(encoding)
            span_idxs.append(self.strategy.span_indices(lattice, encoding))
            word_span_idxs.append(lattice.pairs())
            span_masks.append(lattice.mask)

        text_lengths = np.array([len(words) for words in batch_words], dtype=np.int64)
        token_lengths = np.array(
            [len(encoding.input_ids) for encoding in encodings], dtype=np.int64
        )
        input_ids = pad_sequences([encoding.input_ids for encoding in encodings])
        attention_mask = pad_sequences(
            [[1] * len(encoding.input_ids) for encoding in encodings]
        )
        words_mask = pad_sequences([encoding.words_mask for encoding in encodings])

        id_to_class = {
            idx + self.strategy.label_offset: label for idx, label in enumerate(labels)
        }
        layout = ScoreLayout(
            batch_size=len(texts),
            num_positions=int(text_lengths.max(initial=0)),
            max_width=self.max_width,
            num_labels=len(labels),
        )

        batch = Batch(
            input_ids=input_ids,
            attention_mask=attention_mask,
            words_mask=words_mask,
            text_lengths=text_lengths,
            token_lengths=token_lengths,
            span_idx=pad_span_sequences(span_idxs),
            word_span_idx=pad_span_sequences(word_span_idxs),
            span_mask=pad_sequences(span_masks, pad_value=False, dtype=bool),
            id_to_class=id_to_class,
            words=batch_words,
            layout=layout,
            schema_ids=np.asarray(schema.ids, dtype=np.int64),
            label_positions=list(schema.label_positions),
        )
        logger.debug(
            "Assembled batch: input_ids=%s span_idx=%s layout=%s",
            batch.input_ids.shape,
            batch.span_idx.shape,
            layout.shape,
        )
        return batch
