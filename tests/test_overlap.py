from glinfer.decoding.overlap import greedy_search, spans_conflict
from glinfer.types import Entity


def entity(start, end, label="x", score=0.5):
    return Entity(text="", label=label, start=start, end=end, score=score)


def test_disjoint_spans_are_all_kept_in_start_order():
    candidates = [entity(10, 12, score=0.6), entity(0, 3, score=0.9), entity(5, 8, score=0.7)]
    result = greedy_search(candidates)

    assert [(e.start, e.end) for e in result] == [(0, 3), (5, 8), (10, 12)]


def test_nested_spans_follow_flat_ner():
    outer = entity(0, 4, score=0.9)
    inner = entity(1, 2, score=0.8)

    assert greedy_search([outer, inner], flat_ner=True) == [outer]
    assert greedy_search([outer, inner], flat_ner=False) == [outer, inner]


def test_partial_overlap_conflicts_even_when_nesting_allowed():
    first = entity(0, 5, score=0.9)
    second = entity(3, 8, score=0.95)

    assert greedy_search([first, second], flat_ner=False) == [second]


def test_touching_offsets_conflict():
    assert spans_conflict(0, 4, 4, 8)
    assert not spans_conflict(0, 4, 5, 8)


def test_identical_span_with_two_labels():
    person = entity(0, 4, label="person", score=0.9)
    org = entity(0, 4, label="organization", score=0.7)

    assert greedy_search([person, org], multi_label=False) == [person]
    assert greedy_search([person, org], multi_label=True) == [person, org]


def test_ties_keep_input_order():
    first = entity(0, 4, label="a", score=0.8)
    second = entity(0, 4, label="b", score=0.8)

    assert greedy_search([first, second]) == [first]
    assert greedy_search([second, first]) == [second]


def test_greedy_search_is_idempotent():
    candidates = [
        entity(0, 4, "a", 0.9),
        entity(2, 6, "b", 0.8),
        entity(1, 3, "c", 0.85),
        entity(7, 9, "a", 0.4),
        entity(7, 9, "b", 0.6),
        entity(12, 20, "c", 0.7),
        entity(14, 15, "a", 0.75),
    ]
    for flat_ner in (True, False):
        for multi_label in (True, False):
            once = greedy_search(candidates, flat_ner=flat_ner, multi_label=multi_label)
            twice = greedy_search(once, flat_ner=flat_ner, multi_label=multi_label)
            assert once == twice


def test_empty_input():
    assert greedy_search([]) == []
