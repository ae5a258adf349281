"""
Attribution: route one document's facts to borrowers and applications.

SSN and income facts go to the single best-supported name in proximity;
addresses go to that name and every name at the same proximity score;
loan numbers are shared and fan out to every qualifying name. Bad or
unattributable facts are dropped one at a time with a warning; attribution
never fails a document for data-quality reasons.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError

from loanfacts.names import all_qualifying_names, borrower_ref, choose_best_name, tied_best_names
from loanfacts.registry import missing_application_fields, missing_borrower_fields
from loanfacts.schemas import (
    FACT_ADAPTER,
    AddressExtraction,
    AddressFact,
    ApplicationExtraction,
    ApplicationParty,
    AttributionResult,
    BorrowerExtraction,
    DocumentMetadata,
    EmployerNameFact,
    Evidence,
    FactExtractionResult,
    IdentifierExtraction,
    IncomeExtraction,
    IncomeFact,
    LoanNumberFact,
    NameInProximity,
    SsnFact,
    ValueWithEvidence,
)
from loanfacts.weights import DEFAULT_POLICY, WeightPolicy

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSION = "2.0"
EMPLOYER_CONTEXT_MARKER = "employer"

_FACT_CLASSES = (AddressFact, SsnFact, IncomeFact, LoanNumberFact, EmployerNameFact)


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def _raw_fact_type(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("fact_type") or "unknown")
    return str(getattr(raw, "fact_type", "unknown"))


def parse_fact(raw: Any):
    """Validate one fact (dict or model) into its tagged variant. Raises ValidationError."""
    if isinstance(raw, _FACT_CLASSES):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    return FACT_ADAPTER.validate_python(raw)


def evidence_with_proximity(evidence: Sequence[Evidence], proximity_score: Optional[int]) -> List[Evidence]:
    if proximity_score is None:
        return list(evidence)
    return [e.model_copy(update={"proximity_score": proximity_score}) for e in evidence]


class _BorrowerIndex:
    """borrower_ref -> attributed facts, in first-seen order."""

    def __init__(self) -> None:
        self.full_names: Dict[str, str] = {}
        self.name_evidence: Dict[str, List[Evidence]] = {}
        self.zips: Dict[str, ValueWithEvidence] = {}
        self.addresses: Dict[str, List[AddressExtraction]] = {}
        self.incomes: Dict[str, List[IncomeExtraction]] = {}
        self.identifiers: Dict[str, List[IdentifierExtraction]] = {}

    def seed(self, entry: NameInProximity) -> Optional[str]:
        ref = borrower_ref(entry.full_name)
        if not ref:
            return None
        if ref not in self.full_names:
            self.full_names[ref] = " ".join(entry.full_name.split())
            self.name_evidence[ref] = list(entry.evidence)
        return ref

    def build(self) -> List[BorrowerExtraction]:
        borrowers: List[BorrowerExtraction] = []
        for ref, full_name in self.full_names.items():
            borrower = BorrowerExtraction(
                borrower_ref=ref,
                full_name=ValueWithEvidence(value=full_name, evidence=self.name_evidence[ref]),
                zip=self.zips.get(ref),
                addresses=self.addresses.get(ref, []),
                income_history=self.incomes.get(ref, []),
                identifiers=self.identifiers.get(ref, []),
            )
            borrower.missing_fields = missing_borrower_fields(borrower)
            borrowers.append(borrower)
        return borrowers


class _Run:
    def __init__(self, document: DocumentMetadata, policy: WeightPolicy, correlation_id: Optional[str]) -> None:
        self.document = document
        self.policy = policy
        self.correlation_id = correlation_id
        self.borrowers = _BorrowerIndex()
        self.loan_facts: List[LoanNumberFact] = []
        self.warnings: List[str] = []

    def warn(self, index: int, fact_type: str, message: str) -> None:
        text = f"fact[{index}] ({fact_type}): {message}"
        logger.warning(
            "Attribution: %s (document_id=%s, correlation_id=%s)",
            text,
            self.document.document_id,
            self.correlation_id,
        )
        self.warnings.append(text)

    def resolve_owner(self, index: int, fact) -> Optional[NameInProximity]:
        owner = choose_best_name(fact.names_in_proximity, self.policy)
        if owner is None or not borrower_ref(owner.full_name):
            self.warn(index, fact.fact_type, "dropped, no name in proximity to attribute it to")
            return None
        return owner

    def route(self, index: int, fact) -> None:
        if isinstance(fact, AddressFact):
            self.address(index, fact)
        elif isinstance(fact, SsnFact):
            self.ssn(index, fact)
        elif isinstance(fact, IncomeFact):
            self.income(index, fact)
        elif isinstance(fact, LoanNumberFact):
            self.loan_facts.append(fact)
        else:
            # employer_name is not persisted on any record yet
            logger.debug(
                "Attribution: discarding employer_name fact %s (document_id=%s)",
                index,
                self.document.document_id,
            )

    def address(self, index: int, fact: AddressFact) -> None:
        context = fact.evidence[0].evidence_source_context or ""
        if EMPLOYER_CONTEXT_MARKER in context:
            # employer addresses belong to the employer, whatever the proximity says
            logger.debug(
                "Attribution: skipping employer address fact %s (context=%s, document_id=%s)",
                index,
                context,
                self.document.document_id,
            )
            return
        owner = self.resolve_owner(index, fact)
        if owner is None:
            return
        # a shared address block is copied onto each co-owner, not merged into one object
        for co_owner in tied_best_names(fact.names_in_proximity, self.policy):
            ref = self.borrowers.seed(co_owner)
            evidence = evidence_with_proximity(fact.evidence, co_owner.proximity_score)
            self.borrowers.addresses.setdefault(ref, []).append(
                AddressExtraction(type="current", value=fact.value, evidence=evidence)
            )
            if ref not in self.borrowers.zips:
                self.borrowers.zips[ref] = ValueWithEvidence(value=fact.value.zip, evidence=evidence)

    def ssn(self, index: int, fact: SsnFact) -> None:
        owner = self.resolve_owner(index, fact)
        if owner is None:
            return
        ref = self.borrowers.seed(owner)
        self.borrowers.identifiers.setdefault(ref, []).append(
            IdentifierExtraction(
                type="ssn",
                value=fact.value,
                evidence=evidence_with_proximity(fact.evidence, owner.proximity_score),
            )
        )

    def income(self, index: int, fact: IncomeFact) -> None:
        owner = self.resolve_owner(index, fact)
        if owner is None:
            return
        ref = self.borrowers.seed(owner)
        value = fact.value
        self.borrowers.incomes.setdefault(ref, []).append(
            IncomeExtraction(
                source_type=value.source_type or "other",
                employer=value.employer,
                period=value.period,
                amount=value.amount,
                currency=value.currency or "USD",
                frequency=value.frequency,
                evidence=evidence_with_proximity(fact.evidence, owner.proximity_score),
            )
        )

    def applications(self) -> List[ApplicationExtraction]:
        applications: List[ApplicationExtraction] = []
        for position, fact in enumerate(self.loan_facts, start=1):
            loan_number = (fact.value or "").strip()
            parties = [
                ApplicationParty(borrower_ref=borrower_ref(n.full_name), role="borrower")
                for n in all_qualifying_names(fact.names_in_proximity)
            ]
            application = ApplicationExtraction(
                application_ref=loan_number or f"application_{position}",
                loan_number=ValueWithEvidence(value=loan_number, evidence=list(fact.evidence)),
                parties=parties,
            )
            application.missing_fields = missing_application_fields(application)
            applications.append(application)
        return applications


def attribute_facts(
    facts: Optional[Sequence[Any]],
    document: Union[DocumentMetadata, Dict[str, Any], None],
    policy: Optional[WeightPolicy] = None,
    correlation_id: Optional[str] = None,
) -> AttributionResult:
    """
    Attribute one document's facts.

    `facts` may hold dicts or already-validated fact models. Output is a pure
    function of the inputs: same facts, same document, same policy -> same result.
    """
    if facts is None:
        raise TypeError("facts is required (pass an empty list for a document with no facts)")
    if document is None:
        raise TypeError("document metadata is required")
    if not isinstance(document, DocumentMetadata):
        document = DocumentMetadata.model_validate(document)

    run = _Run(document, policy or DEFAULT_POLICY, correlation_id)

    for index, raw in enumerate(facts):
        try:
            fact = parse_fact(raw)
        except ValidationError as exc:
            run.warn(index, _raw_fact_type(raw), f"dropped malformed fact: {_validation_summary(exc)}")
            continue
        run.route(index, fact)

    # loan-number parties get a borrower record even with no other facts
    for fact in run.loan_facts:
        for entry in all_qualifying_names(fact.names_in_proximity):
            run.borrowers.seed(entry)

    borrowers = run.borrowers.build()
    applications = run.applications()

    if len(facts) > 0 and not borrowers:
        logger.warning(
            "Attribution: %s facts present but no name in proximity produced a borrower_ref "
            "(document_id=%s, correlation_id=%s, fact_types=%s)",
            len(facts),
            document.document_id,
            correlation_id,
            [_raw_fact_type(f) for f in facts],
        )
        run.warnings.append(
            f"no borrowers attributed from {len(facts)} facts; check that each fact names at least one person"
        )

    logger.info(
        "Attribution complete (document_id=%s, facts=%s, borrowers=%s, applications=%s, warnings=%s)",
        document.document_id,
        len(facts),
        len(borrowers),
        len(applications),
        len(run.warnings),
    )
    return AttributionResult(
        correlation_id=correlation_id,
        document=document,
        borrowers=borrowers,
        applications=applications,
        warnings=run.warnings,
    )


def attribute_extraction_result(
    payload: Union[FactExtractionResult, Dict[str, Any]],
    policy: Optional[WeightPolicy] = None,
) -> AttributionResult:
    """Attribute a fact-based extraction envelope (schema_version 2.0)."""
    if payload is None:
        raise TypeError("extraction result is required")
    if not isinstance(payload, FactExtractionResult):
        payload = FactExtractionResult.model_validate(payload)
    if payload.schema_version != SUPPORTED_SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported extraction schema_version {payload.schema_version!r}; "
            f"expected {SUPPORTED_SCHEMA_VERSION!r}"
        )
    result = attribute_facts(payload.facts, payload.document, policy, payload.correlation_id)
    result.warnings = [*payload.warnings, *result.warnings]
    return result
