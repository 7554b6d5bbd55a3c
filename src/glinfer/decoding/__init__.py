"""Decoding: score transforms, span decoding and overlap resolution."""

from glinfer.decoding.classification import (
    decode_classification,
    decode_multi_label,
    decode_single_label,
)
from glinfer.decoding.overlap import greedy_search, spans_conflict
from glinfer.decoding.scores import sigmoid, softmax
from glinfer.decoding.span_decoder import (
    SpanDecoder,
    decode_dense_scores,
    decode_span_logits,
    dot_product_scores,
)

__all__ = [
    "SpanDecoder",
    "decode_classification",
    "decode_dense_scores",
    "decode_multi_label",
    "decode_single_label",
    "decode_span_logits",
    "dot_product_scores",
    "greedy_search",
    "sigmoid",
    "softmax",
    "spans_conflict",
]
