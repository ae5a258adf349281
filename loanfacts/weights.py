"""
Evidence source context weights used for tie-breaking and confidence scoring.

Starter policy for the loan-document corpus; tune it as failure modes are
observed (see policy_store for loading a tuned table from disk).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

EVIDENCE_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        # Borrower address
        "tax_return_1040_taxpayer_address_block": 3.0,
        "w2_employee_address_block": 3.0,
        "closing_disclosure_borrower_section": 3.0,
        "bank_statement_account_holder_address_block": 2.0,
        "paystub_employee_info_block": 2.0,
        "paystub_header_employer_block": 0.25,
        "w2_employer_address_block": 0.25,
        # Income amount
        "w2_wages_boxes_annual": 3.0,
        "tax_return_1040_schedule_c_net_profit": 3.0,
        "paystub_ytd_rate_of_pay": 2.0,
        "evoe_verification": 2.0,
        "letter_of_explanation": 0.75,
        # Fallback
        "other": 0.5,
    }
)

DEFAULT_EVIDENCE_WEIGHT = 0.5


@dataclass(frozen=True)
class WeightPolicy:
    """Immutable context -> weight table with a fallback for missing/unknown contexts."""

    weights: Mapping[str, float] = field(default_factory=lambda: EVIDENCE_WEIGHTS)
    default_weight: float = DEFAULT_EVIDENCE_WEIGHT

    def __post_init__(self) -> None:
        table = {str(k): float(v) for k, v in dict(self.weights).items()}
        bad = sorted(k for k, v in table.items() if v < 0)
        if bad:
            raise ValueError(f"Evidence weights must be non-negative: {bad}")
        if self.default_weight < 0:
            raise ValueError("Default evidence weight must be non-negative")
        object.__setattr__(self, "weights", MappingProxyType(table))
        object.__setattr__(self, "default_weight", float(self.default_weight))

    def weight(self, context: Optional[Any] = None) -> float:
        if isinstance(context, Enum):
            context = context.value
        if context and context in self.weights:
            return self.weights[context]
        return self.default_weight


DEFAULT_POLICY = WeightPolicy()


def get_evidence_weight(context: Optional[Any] = None, policy: Optional[WeightPolicy] = None) -> float:
    return (policy or DEFAULT_POLICY).weight(context)
