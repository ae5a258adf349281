"""
Read-model assembly: merge per-document attribution results into one record
per borrower and one per loan application, with confidence on every value.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from loanfacts.merge import merge_addresses, merge_identifiers, merge_incomes
from loanfacts.registry import STATUS_PARTIAL, borrower_status, missing_record_fields
from loanfacts.schemas import (
    ApplicationExtraction,
    ApplicationLink,
    ApplicationPartyRecord,
    ApplicationRecord,
    AttributionResult,
    BorrowerRecord,
    DocumentRef,
)
from loanfacts.weights import WeightPolicy


def _document_ref(result: AttributionResult) -> DocumentRef:
    return DocumentRef(
        document_id=result.document.document_id,
        source_filename=result.document.source_filename,
    )


def application_key(result: AttributionResult, application: ApplicationExtraction) -> str:
    """Loan number when known; a blank loan number only identifies an application within its document."""
    loan_number = application.loan_number.value
    if loan_number:
        return loan_number
    return f"{result.document.document_id}:{application.application_ref}"


def _application_links(results: List[AttributionResult]) -> Dict[str, Dict[str, ApplicationLink]]:
    links: Dict[str, Dict[str, ApplicationLink]] = {}
    for result in results:
        for application in result.applications:
            key = application_key(result, application)
            for party in application.parties:
                by_app = links.setdefault(party.borrower_ref, {})
                existing = by_app.get(key)
                evidence = list(application.loan_number.evidence)
                if existing is None:
                    by_app[key] = ApplicationLink(
                        application_ref=key,
                        loan_number=application.loan_number.value,
                        role=party.role,
                        evidence=evidence,
                    )
                else:
                    by_app[key] = existing.model_copy(update={"evidence": [*existing.evidence, *evidence]})
    return links


def build_borrower_records(
    results: Iterable[AttributionResult],
    policy: Optional[WeightPolicy] = None,
) -> List[BorrowerRecord]:
    """
    One record per borrower_ref across every given document.

    Addresses and incomes are merged per borrower, identifiers per borrower and
    identifier type. Records come back in first-seen order.
    """
    results = list(results)
    grouped: Dict[str, Dict[str, Any]] = {}
    for result in results:
        doc_ref = _document_ref(result)
        for borrower in result.borrowers:
            entry = grouped.setdefault(
                borrower.borrower_ref,
                {
                    "full_name": borrower.full_name.value,
                    "zip": None,
                    "addresses": [],
                    "incomes": [],
                    "identifiers": [],
                    "documents": {},
                },
            )
            if entry["zip"] is None and borrower.zip and borrower.zip.value:
                entry["zip"] = borrower.zip.value
            entry["addresses"].extend(borrower.addresses)
            entry["incomes"].extend(borrower.income_history)
            entry["identifiers"].extend(borrower.identifiers)
            entry["documents"].setdefault(doc_ref.document_id, doc_ref)

    links = _application_links(results)
    records: List[BorrowerRecord] = []
    for ref, entry in grouped.items():
        record = BorrowerRecord(
            borrower_ref=ref,
            full_name=entry["full_name"],
            status=STATUS_PARTIAL,
            zip=entry["zip"],
            addresses=merge_addresses(entry["addresses"], policy),
            income_history=merge_incomes(entry["incomes"], policy),
            identifiers=merge_identifiers(entry["identifiers"], policy),
            applications=list(links.get(ref, {}).values()),
            documents=list(entry["documents"].values()),
        )
        record.missing_fields = missing_record_fields(record)
        record.status = borrower_status(record.missing_fields)
        records.append(record)
    return records


def build_application_records(results: Iterable[AttributionResult]) -> List[ApplicationRecord]:
    """One record per loan number; parties are unioned and resolved to display names."""
    results = list(results)
    names: Dict[str, str] = {}
    for result in results:
        for borrower in result.borrowers:
            names.setdefault(borrower.borrower_ref, borrower.full_name.value)

    records: Dict[str, ApplicationRecord] = {}
    documents: Dict[str, Dict[str, DocumentRef]] = {}
    for result in results:
        doc_ref = _document_ref(result)
        for application in result.applications:
            key = application_key(result, application)
            record = records.get(key)
            if record is None:
                record = ApplicationRecord(application_ref=key, loan_number=application.loan_number.value)
                records[key] = record
                documents[key] = {}
            seen = {p.borrower_ref for p in record.parties}
            for party in application.parties:
                if party.borrower_ref in seen:
                    continue
                seen.add(party.borrower_ref)
                record.parties.append(
                    ApplicationPartyRecord(
                        borrower_ref=party.borrower_ref,
                        full_name=names.get(party.borrower_ref, party.borrower_ref),
                        role=party.role,
                    )
                )
            record.evidence.extend(application.loan_number.evidence)
            documents[key].setdefault(doc_ref.document_id, doc_ref)

    for key, record in records.items():
        record.documents = list(documents[key].values())
    return list(records.values())
