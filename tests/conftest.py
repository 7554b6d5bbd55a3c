from __future__ import annotations

import numpy as np
import pytest


class FakeTokenizer:
    """
    Deterministic tokenizer: every 4 characters of a word become one sub-token.
    Records every encode() call so tests can check call order and counts.
    """

    cls_token_id = 1
    sep_token_id = 2

    def __init__(self):
        self.vocab: dict[str, int] = {}
        self.calls: list[str] = []

    def token_id(self, piece: str) -> int:
        return self.vocab.setdefault(piece, 100 + len(self.vocab))

    def encode(self, text: str, add_special_tokens: bool = False) -> list[int]:
        self.calls.append(text)
        ids = [self.token_id(text[i : i + 4]) for i in range(0, len(text), 4)]
        if add_special_tokens:
            ids = [self.cls_token_id, *ids, self.sep_token_id]
        return ids


class SpanLogitsEngine:
    """
    Fake span-enumeration engine.
    Returns a [batch, words, max_width, labels] logit tensor filled with `fill`,
    with the cells listed in `hits` set to their given value.
    """

    def __init__(self, num_labels: int, hits=None, fill: float = -10.0, output_name: str = "logits"):
        self.num_labels = num_labels
        self.hits = hits or {}
        self.fill = fill
        self.output_name = output_name
        self.calls: list[dict[str, np.ndarray]] = []

    def run(self, feeds):
        self.calls.append(dict(feeds))
        batch_size = feeds["input_ids"].shape[0]
        num_words = int(feeds["text_lengths"].max())
        max_width = feeds["span_idx"].shape[1] // num_words

        logits = np.full((batch_size, num_words, max_width, self.num_labels), self.fill, dtype=np.float32)
        for index, value in self.hits.items():
            logits[index] = value
        return {self.output_name: logits}


class RecordingEngine:
    """Fake engine returning the output of `fn(feeds)` under a single name."""

    def __init__(self, fn, output_name: str = "output"):
        self.fn = fn
        self.output_name = output_name
        self.calls: list[dict[str, np.ndarray]] = []

    def run(self, feeds):
        self.calls.append(dict(feeds))
        return {self.output_name: self.fn(feeds)}


@pytest.fixture()
def tokenizer() -> FakeTokenizer:
    return FakeTokenizer()
