"""
Tests for owner resolution among names in proximity to a fact.
Ensures proximity wins first, then evidence weight, then input order.
"""
from loanfacts.names import (
    all_qualifying_names,
    borrower_ref,
    choose_best_name,
    merge_names_in_proximity,
    normalize_name,
    tied_best_names,
)
from loanfacts.schemas import NameInProximity
from loanfacts.weights import WeightPolicy
from helpers import ev


def name(full_name, score, context=None, page=1):
    return NameInProximity(full_name=full_name, proximity_score=score, evidence=[ev(context, page=page)])


def test_normalize_name_collapses_case_and_whitespace():
    assert normalize_name("  John \t  HOMEOWNER\n") == "john homeowner"
    assert borrower_ref("John Homeowner") == borrower_ref("john   homeowner")
    assert borrower_ref("J. Homeowner") != borrower_ref("John Homeowner")
    assert normalize_name(None) == ""


def test_choose_best_name_returns_none_for_no_candidates():
    assert choose_best_name([]) is None
    assert choose_best_name(None) is None


def test_choose_best_name_prefers_highest_proximity():
    """
    The closest name wins even when a farther name has stronger evidence
    and comes first.
    """
    names = [
        name("Mary Homeowner", 1, "w2_employee_address_block"),
        name("John Homeowner", 3, "letter_of_explanation"),
        name("Pat Cosigner", 2, "closing_disclosure_borrower_section"),
    ]

    assert choose_best_name(names).full_name == "John Homeowner"


def test_choose_best_name_breaks_ties_on_first_evidence_weight():
    names = [
        name("Mary Homeowner", 3, "paystub_employee_info_block"),  # 2.0
        name("John Homeowner", 3, "w2_employee_address_block"),  # 3.0
    ]

    assert choose_best_name(names).full_name == "John Homeowner"


def test_choose_best_name_uses_injected_policy():
    names = [
        name("Mary Homeowner", 3, "paystub_employee_info_block"),
        name("John Homeowner", 3, "w2_employee_address_block"),
    ]
    policy = WeightPolicy(weights={"paystub_employee_info_block": 2.5, "w2_employee_address_block": 1.0})

    assert choose_best_name(names, policy).full_name == "Mary Homeowner"


def test_choose_best_name_full_tie_keeps_input_order():
    names = [
        name("Mary Homeowner", 2, "other"),
        name("John Homeowner", 2, "other"),
    ]

    assert choose_best_name(names).full_name == "Mary Homeowner"
    assert choose_best_name(list(reversed(names))).full_name == "John Homeowner"


def test_unknown_context_ties_at_default_weight():
    names = [
        name("Mary Homeowner", 3, "some_new_block"),
        name("John Homeowner", 3, None),
    ]

    assert choose_best_name(names).full_name == "Mary Homeowner"


def test_tied_best_names_returns_every_indistinguishable_owner():
    names = [
        name("John Homeowner", 3, "tax_return_1040_taxpayer_address_block"),
        name("Dependent Child", 1, "tax_return_1040_taxpayer_address_block"),
        name("Mary Homeowner", 3, "tax_return_1040_taxpayer_address_block"),
    ]

    owners = tied_best_names(names)

    assert [n.full_name for n in owners] == ["John Homeowner", "Mary Homeowner"]


def test_tied_best_names_ignores_evidence_weight_at_same_score():
    names = [
        name("Mary Homeowner", 3, "letter_of_explanation"),
        name("Pat Cosigner", 2, "w2_employee_address_block"),
        name("John Homeowner", 3, "w2_employee_address_block"),
    ]

    # the weight tie-break still picks who comes first
    assert [n.full_name for n in tied_best_names(names)] == ["John Homeowner", "Mary Homeowner"]
    assert tied_best_names([]) == []


def test_all_qualifying_names_dedupes_by_normalized_name():
    names = [
        name("John Homeowner", 1, page=1),
        name("Mary Homeowner", 0, page=1),
        name("  JOHN homeowner ", 3, page=2),
    ]

    merged = all_qualifying_names(names)

    assert [n.full_name for n in merged] == ["John Homeowner", "Mary Homeowner"]
    john = merged[0]
    assert john.proximity_score == 3
    assert [e.page_number for e in john.evidence] == [1, 2]
    # inputs are not modified
    assert names[0].proximity_score == 1
    assert len(names[0].evidence) == 1


def test_all_qualifying_names_keeps_zero_scores():
    names = [name("Pat Cosigner", 0)]

    assert [n.full_name for n in all_qualifying_names(names)] == ["Pat Cosigner"]


def test_merge_names_in_proximity_concatenates_evidence():
    existing = [name("John Homeowner", 3, page=1)]
    additional = [name("John Homeowner", 2, page=4), name("Mary Homeowner", 3, page=4)]

    merged = merge_names_in_proximity(existing, additional)

    assert len(merged) == 2
    assert merged[0].proximity_score == 3
    assert [e.page_number for e in merged[0].evidence] == [1, 4]
