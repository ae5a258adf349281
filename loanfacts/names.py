"""
Owner resolution for facts that name several people in proximity.

A borrower is identified by its normalized full name (borrower_ref). Two
documents naming "John  Homeowner" and "john homeowner" refer to the same
borrower; "J. Homeowner" is a different one. There is no fuzzy matching.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from loanfacts.schemas import NameInProximity
from loanfacts.weights import DEFAULT_POLICY, WeightPolicy


def normalize_name(full_name: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (full_name or "").strip()).lower()


def borrower_ref(full_name: Optional[str]) -> str:
    return normalize_name(full_name)


def name_evidence_weight(entry: NameInProximity, policy: Optional[WeightPolicy] = None) -> float:
    """Weight of the entry's first evidence context (tie-breaker on equal proximity)."""
    if not entry.evidence:
        return 0.0
    return (policy or DEFAULT_POLICY).weight(entry.evidence[0].evidence_source_context)


def choose_best_name(
    names: Optional[Iterable[NameInProximity]],
    policy: Optional[WeightPolicy] = None,
) -> Optional[NameInProximity]:
    """
    Pick the single best-supported owner.

    Highest proximity_score wins; on a tie the entry whose first evidence has the
    higher weight wins; remaining ties keep the earliest entry.
    Returns None for an empty list, in which case the caller must drop the fact.
    """
    policy = policy or DEFAULT_POLICY
    best: Optional[NameInProximity] = None
    for entry in names or []:
        if best is None:
            best = entry
        elif entry.proximity_score > best.proximity_score:
            best = entry
        elif entry.proximity_score == best.proximity_score:
            if name_evidence_weight(entry, policy) > name_evidence_weight(best, policy):
                best = entry
    return best


def tied_best_names(
    names: Optional[Iterable[NameInProximity]],
    policy: Optional[WeightPolicy] = None,
) -> List[NameInProximity]:
    """
    The best name first, then every other name at the same proximity score.
    Joint filers listed together on one address block both own that address,
    whatever context their name evidence came from.
    """
    names = list(names or [])
    best = choose_best_name(names, policy)
    if best is None:
        return []
    return all_qualifying_names(
        [best, *(n for n in names if n is not best and n.proximity_score == best.proximity_score)]
    )


def all_qualifying_names(names: Optional[Iterable[NameInProximity]]) -> List[NameInProximity]:
    """
    Every distinct owner of a shared fact (loan numbers), in first-seen order.

    Repeats of the same normalized name collapse into one entry that keeps the
    first spelling, the highest score seen and the concatenated evidence.
    """
    merged: Dict[str, NameInProximity] = {}
    for entry in names or []:
        ref = normalize_name(entry.full_name)
        if not ref:
            continue
        existing = merged.get(ref)
        if existing is None:
            merged[ref] = entry
            continue
        merged[ref] = NameInProximity(
            full_name=existing.full_name,
            evidence=[*existing.evidence, *entry.evidence],
            proximity_score=max(existing.proximity_score, entry.proximity_score),
        )
    return list(merged.values())


def merge_names_in_proximity(
    existing: Iterable[NameInProximity],
    additional: Iterable[NameInProximity],
) -> List[NameInProximity]:
    return all_qualifying_names([*existing, *additional])
