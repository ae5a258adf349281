from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from loanfacts.schemas import ApplicationExtraction, BorrowerExtraction, BorrowerRecord

STATUS_COMPLETE = "COMPLETE"
STATUS_PARTIAL = "PARTIAL"


@dataclass(frozen=True)
class FieldDef:
    field_key: str
    label: str
    scope: str  # "borrower" | "application"
    value_type: str  # "string" | "address" | "list"
    required: bool = False
    description: str = ""


def canonical_fields() -> List[FieldDef]:
    """
    Record fields produced by attribution and reported in missing_fields.
    This is a contract: stable keys, stable meaning.
    """
    fields: List[FieldDef] = [
        # --------------------
        # Borrower
        # --------------------
        FieldDef("borrower.full_name", "Full name", "borrower", "string", required=True),
        FieldDef(
            "borrower.zip",
            "Zip code",
            "borrower",
            "string",
            required=True,
            description="zip of the first address attributed to the borrower",
        ),
        FieldDef("borrower.addresses", "Addresses", "borrower", "list", required=True),
        FieldDef("borrower.income_history", "Income history", "borrower", "list", required=True),
        FieldDef(
            "borrower.identifiers",
            "Identifiers",
            "borrower",
            "list",
            required=True,
            description="ssn and other personal identifiers",
        ),

        # --------------------
        # Application
        # --------------------
        FieldDef("application.loan_number", "Loan number", "application", "string", required=True),
        FieldDef("application.property_address", "Property address", "application", "address", required=True),
        FieldDef("application.parties", "Parties", "application", "list", required=True),
    ]
    return fields


def field_index() -> Dict[str, FieldDef]:
    return {f.field_key: f for f in canonical_fields()}


def required_field_keys(scope: str) -> List[str]:
    return [f.field_key for f in canonical_fields() if f.required and f.scope == scope]


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def missing_borrower_fields(borrower: BorrowerExtraction) -> List[str]:
    values = {
        "borrower.full_name": borrower.full_name.value,
        "borrower.zip": borrower.zip.value if borrower.zip else None,
        "borrower.addresses": borrower.addresses,
        "borrower.income_history": borrower.income_history,
        "borrower.identifiers": borrower.identifiers,
    }
    return [k for k in required_field_keys("borrower") if _is_missing(values.get(k))]


def missing_record_fields(record: BorrowerRecord) -> List[str]:
    values = {
        "borrower.full_name": record.full_name,
        "borrower.zip": record.zip,
        "borrower.addresses": record.addresses,
        "borrower.income_history": record.income_history,
        "borrower.identifiers": record.identifiers,
    }
    return [k for k in required_field_keys("borrower") if _is_missing(values.get(k))]


def missing_application_fields(application: ApplicationExtraction) -> List[str]:
    values = {
        "application.loan_number": application.loan_number.value,
        "application.property_address": application.property_address,
        "application.parties": application.parties,
    }
    return [k for k in required_field_keys("application") if _is_missing(values.get(k))]


def borrower_status(missing_fields: List[str]) -> str:
    return STATUS_COMPLETE if not missing_fields else STATUS_PARTIAL
