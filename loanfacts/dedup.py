"""
Intra-document fact deduplication for per-document extractors.

Form documents repeat the same value (an SSN on every page of a return, the
same address on two schedules). Repeats collapse into one fact carrying all
of the evidence, so attribution and confidence see one value backed by several
citations instead of several competing values.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from loanfacts.merge import normalize_identifier_value
from loanfacts.names import choose_best_name, merge_names_in_proximity
from loanfacts.schemas import AddressFact, IncomeFact, NameInProximity, SsnFact
from loanfacts.weights import WeightPolicy


def _merged(existing, fact):
    return existing.model_copy(
        update={
            "evidence": [*existing.evidence, *fact.evidence],
            "names_in_proximity": merge_names_in_proximity(
                existing.names_in_proximity, fact.names_in_proximity
            ),
        }
    )


def _address_key(fact: AddressFact) -> Tuple[str, str]:
    return ((fact.value.street1 or "").strip().lower(), fact.value.zip.strip())


def _income_key(fact: IncomeFact) -> Tuple[float, int, str]:
    return (fact.value.amount, fact.value.period.year, fact.value.source_type or "other")


def deduplicate_facts(facts: Sequence[Any]) -> List[Any]:
    """
    Collapse repeated SSN, address and income facts within one document.

    SSNs match on the normalized value, addresses on (street1, zip), incomes on
    (amount, year, source_type). Output: SSNs, addresses, incomes, then every
    other fact, each in first-seen order.
    """
    ssns: Dict[str, SsnFact] = {}
    addresses: Dict[Tuple[str, str], AddressFact] = {}
    incomes: Dict[Tuple[float, int, str], IncomeFact] = {}
    others: List[Any] = []

    for fact in facts:
        if isinstance(fact, SsnFact):
            groups, key = ssns, normalize_identifier_value(fact.value)
        elif isinstance(fact, AddressFact):
            groups, key = addresses, _address_key(fact)
        elif isinstance(fact, IncomeFact):
            groups, key = incomes, _income_key(fact)
        else:
            others.append(fact)
            continue
        existing = groups.get(key)
        groups[key] = fact if existing is None else _merged(existing, fact)

    return [*ssns.values(), *addresses.values(), *incomes.values(), *others]


def choose_document_owner(
    facts: Sequence[Any],
    policy: Optional[WeightPolicy] = None,
) -> Optional[NameInProximity]:
    """Single owner for a single-subject document (paystub, W-2), across all of its facts."""
    names: List[NameInProximity] = []
    for fact in facts:
        names.extend(getattr(fact, "names_in_proximity", None) or [])
    return choose_best_name(merge_names_in_proximity([], names), policy)
