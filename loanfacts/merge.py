"""
Cross-source merge and confidence.

Values that recur across documents are grouped by an exact normalized key.
Each group's favorable weight is the summed evidence weight behind it; its
unfavorable weight is the weight behind every other value in the same
conflict domain (addresses and incomes: one borrower; identifiers: one
borrower and identifier type).

    score = favorable / max(unfavorable, EPSILON)
    HIGH    score > 1
    MEDIUM  |score - 1| <= MEDIUM_TOLERANCE
    LOW     otherwise

A value with no competitor is therefore always HIGH, even when it rests on a
single low-weight citation.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel

from loanfacts.schemas import (
    AddressExtraction,
    AddressValue,
    ConfidenceLevel,
    Evidence,
    IdentifierExtraction,
    IncomeExtraction,
    MergedAddress,
    MergedIdentifier,
    MergedIncome,
)
from loanfacts.weights import DEFAULT_POLICY, WeightPolicy

EPSILON = 1e-6
MEDIUM_TOLERANCE = 1e-4

_IDENTIFIER_NOISE = re.compile(r"[\s-]+")


def normalize_identifier_value(value: Optional[str]) -> str:
    return _IDENTIFIER_NOISE.sub("", value or "")


def _lower_trim(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def address_key(value: AddressValue) -> str:
    return "|".join(
        [_lower_trim(value.street1), _lower_trim(value.city), _lower_trim(value.state), _lower_trim(value.zip)]
    )


def income_key(income: IncomeExtraction) -> str:
    employer = (income.employer or "").strip().upper()
    return "|".join([income.source_type, employer, str(income.period.year)])


def identifier_key(identifier: IdentifierExtraction) -> str:
    return f"{identifier.type}|{normalize_identifier_value(identifier.value)}"


def evidence_weight(evidence: Iterable[Evidence], policy: Optional[WeightPolicy] = None) -> float:
    policy = policy or DEFAULT_POLICY
    return sum(policy.weight(e.evidence_source_context) for e in evidence)


def confidence_score(favorable: float, unfavorable: float) -> float:
    return favorable / max(unfavorable, EPSILON)


def confidence_level(favorable: float, unfavorable: float) -> ConfidenceLevel:
    score = confidence_score(favorable, unfavorable)
    if score > 1:
        return ConfidenceLevel.HIGH
    if 1 - MEDIUM_TOLERANCE <= score <= 1 + MEDIUM_TOLERANCE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


@dataclass(frozen=True)
class MergedGroup:
    key: str
    domain: Hashable
    items: Tuple[Any, ...]
    evidence: Tuple[Evidence, ...]
    favorable: float
    unfavorable: float

    @property
    def score(self) -> float:
        return confidence_score(self.favorable, self.unfavorable)

    @property
    def confidence(self) -> ConfidenceLevel:
        return confidence_level(self.favorable, self.unfavorable)

    @property
    def first(self) -> Any:
        return self.items[0]


def merge_groups(
    items: Iterable[Any],
    key_fn: Callable[[Any], str],
    policy: Optional[WeightPolicy] = None,
    domain_fn: Optional[Callable[[Any], Hashable]] = None,
) -> List[MergedGroup]:
    """
    Group items by key_fn and score every group against its conflict domain.

    Items need an `evidence` list. Without domain_fn every item shares one
    domain. Groups come back in first-seen order; inputs are never mutated.
    """
    policy = policy or DEFAULT_POLICY
    grouped: Dict[Tuple[Hashable, str], List[Any]] = {}
    for item in items:
        domain = domain_fn(item) if domain_fn else None
        grouped.setdefault((domain, key_fn(item)), []).append(item)

    favorable: Dict[Tuple[Hashable, str], float] = {}
    domain_totals: Dict[Hashable, float] = {}
    for group_key, members in grouped.items():
        weight = sum(evidence_weight(m.evidence, policy) for m in members)
        favorable[group_key] = weight
        domain_totals[group_key[0]] = domain_totals.get(group_key[0], 0.0) + weight

    groups: List[MergedGroup] = []
    for (domain, key), members in grouped.items():
        fav = favorable[(domain, key)]
        groups.append(
            MergedGroup(
                key=key,
                domain=domain,
                items=tuple(members),
                evidence=tuple(e for m in members for e in m.evidence),
                favorable=fav,
                unfavorable=max(domain_totals[domain] - fav, 0.0),
            )
        )
    return groups


def _coerce(items: Iterable[Any], model: Type[BaseModel]) -> List[Any]:
    return [item if isinstance(item, model) else model.model_validate(item) for item in items]


def merge_addresses(
    addresses: Iterable[Any],
    policy: Optional[WeightPolicy] = None,
) -> List[MergedAddress]:
    """Merge one borrower's addresses (the whole input is one conflict domain)."""
    rows = _coerce(addresses, AddressExtraction)
    merged: List[MergedAddress] = []
    for group in merge_groups(rows, lambda a: address_key(a.value), policy):
        first: AddressExtraction = group.first
        merged.append(
            MergedAddress(
                type=first.type,
                street1=first.value.street1,
                street2=first.value.street2,
                city=first.value.city,
                state=first.value.state,
                zip=first.value.zip,
                evidence=list(group.evidence),
                confidence=group.confidence,
            )
        )
    return merged


def merge_incomes(
    incomes: Iterable[Any],
    policy: Optional[WeightPolicy] = None,
) -> List[MergedIncome]:
    """Merge one borrower's income history (the whole input is one conflict domain)."""
    rows = _coerce(incomes, IncomeExtraction)
    merged: List[MergedIncome] = []
    for group in merge_groups(rows, income_key, policy):
        first: IncomeExtraction = group.first
        merged.append(
            MergedIncome(
                source_type=first.source_type,
                employer=first.employer,
                period_year=first.period.year,
                amount=first.amount,
                currency=first.currency,
                frequency=first.frequency,
                evidence=list(group.evidence),
                confidence=group.confidence,
            )
        )
    return merged


def merge_identifiers(
    identifiers: Iterable[Any],
    policy: Optional[WeightPolicy] = None,
) -> List[MergedIdentifier]:
    """Merge one borrower's identifiers; values only compete with identifiers of the same type."""
    rows = _coerce(identifiers, IdentifierExtraction)
    merged: List[MergedIdentifier] = []
    for group in merge_groups(rows, identifier_key, policy, domain_fn=lambda i: i.type):
        first: IdentifierExtraction = group.first
        merged.append(
            MergedIdentifier(
                type=first.type,
                value=first.value,
                evidence=list(group.evidence),
                confidence=group.confidence,
            )
        )
    return merged
