"""Preprocessing: word splitting, span lattices and batch assembly."""

from glinfer.preprocessing.base import BatchStrategy, SchemaEncoding, TextEncoding
from glinfer.preprocessing.batching import (
    Batch,
    BatchAssembler,
    ParallelChannelStrategy,
    SchemaPrefixedStrategy,
)
from glinfer.preprocessing.spans import SpanLattice, generate_spans
from glinfer.preprocessing.words import WordSplitter, split_words

__all__ = [
    "Batch",
    "BatchAssembler",
    "BatchStrategy",
    "ParallelChannelStrategy",
    "SchemaEncoding",
    "SchemaPrefixedStrategy",
    "SpanLattice",
    "TextEncoding",
    "WordSplitter",
    "generate_spans",
    "split_words",
]
