"""Greedy overlap resolution over candidate entities."""

from __future__ import annotations

from typing import Iterable

from glinfer.types import Entity


def spans_conflict(
    start1: int,
    end1: int,
    start2: int,
    end2: int,
    allow_nested: bool = False,
    allow_multi_label: bool = False,
) -> bool:
    """Return True if two spans may not both be kept.

    Offsets are compared inclusively, so spans that merely touch
    (``end1 == start2``) still conflict.
    """
    if start1 == start2 and end1 == end2:
        return not allow_multi_label
    if start1 > end2 or start2 > end1:
        return False
    if allow_nested:
        nested = (start1 <= start2 and end1 >= end2) or (start2 <= start1 and end2 >= end1)
        if nested:
            return False
    return True


def greedy_search(
    candidates: Iterable[Entity],
    flat_ner: bool = True,
    multi_label: bool = False,
) -> list[Entity]:
    """Keep the best-scoring subset of candidates without disallowed overlaps.

    Candidates are visited by descending score (ties keep their input order)
    and accepted when they conflict with no entity accepted so far. This is a
    greedy approximation, not an optimal independent set.

    Args:
        candidates: Possibly overlapping entities
        flat_ner: If True, nested spans conflict as well
        multi_label: If True, an identical span may carry several labels

    Returns:
        Accepted entities ordered by start offset
    """
    selected: list[Entity] = []
    for candidate in sorted(candidates, key=lambda entity: -entity.score):
        has_conflict = any(
            spans_conflict(
                candidate.start,
                candidate.end,
                existing.start,
                existing.end,
                allow_nested=not flat_ner,
                allow_multi_label=multi_label,
            )
            for existing in selected
        )
        if not has_conflict:
            selected.append(candidate)

    return sorted(selected, key=lambda entity: entity.start)
