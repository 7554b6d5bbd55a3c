import logging

import numpy as np
import pytest

from glinfer.decoding.span_decoder import (
    SpanDecoder,
    decode_dense_scores,
    decode_span_logits,
    dot_product_scores,
)
from glinfer.errors import ConfigurationError
from glinfer.layout import ScoreLayout
from glinfer.preprocessing.batching import BatchAssembler, SchemaPrefixedStrategy
from glinfer.preprocessing.spans import generate_spans
from glinfer.preprocessing.words import split_words

TEXTS = ["Alice met Bob", "Paris"]
STARTS = [[0, 6, 10], [0]]
ENDS = [[5, 9, 13], [5]]
ID_TO_CLASS = {1: "person", 2: "city"}


def empty_logits(layout):
    return np.full(layout.shape, -10.0, dtype=np.float32)


def test_decode_span_logits_maps_cells_to_entities():
    layout = ScoreLayout(batch_size=2, num_positions=3, max_width=2, num_labels=2)
    logits = empty_logits(layout)
    logits[0, 0, 0, 0] = 4.0  # "Alice" person
    logits[0, 0, 1, 0] = -1.0  # "Alice met" below threshold
    logits[0, 2, 0, 0] = 3.0  # "Bob" person
    logits[1, 0, 0, 1] = 2.0  # "Paris" city

    result = decode_span_logits(logits, layout, TEXTS, STARTS, ENDS, ID_TO_CLASS)

    assert [(e.text, e.label) for e in result[0]] == [("Alice", "person"), ("Bob", "person")]
    assert [(e.text, e.label, e.start, e.end) for e in result[1]] == [("Paris", "city", 0, 5)]
    assert result[0][0].score == pytest.approx(1 / (1 + np.exp(-4.0)))


def test_decode_span_logits_drops_cells_outside_example():
    layout = ScoreLayout(batch_size=2, num_positions=3, max_width=2, num_labels=2)
    logits = empty_logits(layout)
    logits[1, 2, 0, 0] = 5.0  # second text has a single word
    logits[0, 2, 1, 0] = 5.0  # "Bob" + one more word runs past the end

    result = decode_span_logits(logits, layout, TEXTS, STARTS, ENDS, ID_TO_CLASS)

    assert result == [[], []]


def test_decode_span_logits_accepts_flat_input_and_threshold():
    layout = ScoreLayout(batch_size=1, num_positions=1, max_width=1, num_labels=2)
    logits = np.array([0.5, -0.5])

    assert len(decode_span_logits(logits, layout, ["Bob"], [[0]], [[3]], ID_TO_CLASS)[0]) == 1
    assert decode_span_logits(logits, layout, ["Bob"], [[0]], [[3]], ID_TO_CLASS, threshold=0.9) == [[]]


def test_decode_span_logits_rejects_wrong_size():
    layout = ScoreLayout(batch_size=1, num_positions=3, max_width=2, num_labels=2)
    with pytest.raises(ConfigurationError):
        decode_span_logits(np.zeros(5), layout, TEXTS[:1], STARTS[:1], ENDS[:1], ID_TO_CLASS)


def test_dot_product_scores():
    span_rep = np.array([[1.0, 0.0], [0.0, 2.0], [0.0, 0.0]])
    label_rep = np.array([[3.0, 0.0], [0.0, -3.0]])

    scores = dot_product_scores(span_rep, label_rep)

    assert scores.shape == (3, 2)
    assert scores[0, 0] == pytest.approx(1 / (1 + np.exp(-3.0)))
    assert scores[1, 1] == pytest.approx(1 / (1 + np.exp(6.0)))
    np.testing.assert_allclose(scores[2], [0.5, 0.5])


def test_decode_dense_scores_skips_masked_spans():
    text = "New York rocks"
    words = list(split_words(text))
    lattice = generate_spans(len(words), 2)
    scores = np.zeros((len(lattice), 2))
    scores[1, 0] = 0.9  # "New York"
    scores[5, 1] = 0.95  # masked slot (start 2, width 1)

    result = decode_dense_scores(
        scores, lattice.pairs(), lattice.mask, words, text, ["city", "verb"], threshold=0.5
    )

    assert [(e.text, e.label, e.score) for e in result] == [("New York", "city", 0.9)]


def test_decode_dense_scores_rejects_wrong_shape():
    text = "New York"
    words = list(split_words(text))
    lattice = generate_spans(len(words), 2)
    with pytest.raises(ConfigurationError):
        decode_dense_scores(np.zeros((3, 2)), lattice.pairs(), lattice.mask, words, text, ["a", "b"])


def test_span_decoder_resolves_overlaps(tokenizer):
    texts = ["New York City"]
    batch = BatchAssembler(SchemaPrefixedStrategy(tokenizer), max_width=3).assemble(
        texts, ["location"]
    )
    logits = np.full(batch.layout.shape, -10.0)
    logits[0, 0, 2, 0] = 3.0  # "New York City"
    logits[0, 1, 0, 0] = 2.0  # "York"

    flat = SpanDecoder().decode(batch, texts, logits, flat_ner=True)
    nested = SpanDecoder().decode(batch, texts, logits, flat_ner=False)

    assert [e.text for e in flat[0]] == ["New York City"]
    assert [e.text for e in nested[0]] == ["New York City", "York"]


def test_decode_dense_scores_logs_cells_outside_example(caplog):
    text = "Paris"
    words = list(split_words(text))
    word_spans = np.array([[0, 0], [0, 1]])
    scores = np.full((2, 1), 0.9)

    with caplog.at_level(logging.DEBUG, logger="glinfer.decoding.span_decoder"):
        result = decode_dense_scores(
            scores, word_spans, np.array([True, True]), words, text, ["city"]
        )

    assert [e.text for e in result] == ["Paris"]
    assert "Dropped 1 above-threshold cells" in caplog.text


def test_decode_span_logits_logs_cells_outside_example(caplog):
    layout = ScoreLayout(batch_size=1, num_positions=2, max_width=1, num_labels=1)
    logits = np.array([5.0, 5.0])

    with caplog.at_level(logging.DEBUG, logger="glinfer.decoding.span_decoder"):
        result = decode_span_logits(logits, layout, ["Bob"], [[0]], [[3]], {1: "person"})

    assert [e.text for e in result[0]] == ["Bob"]
    assert "Dropped 1 above-threshold cells" in caplog.text
