from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

QUOTE_MAX_LENGTH = 300

FactType = Literal["address", "ssn", "income", "loan_number", "employer_name"]
IncomeSourceType = Literal[
    "w2", "paystub", "evoe", "tax_return_1040", "schedule_c", "bank_statement", "other"
]
IncomeFrequency = Literal["annual", "monthly", "biweekly", "weekly", "daily", "unknown"]
IdentifierType = Literal["loan_number", "account_number", "ssn", "ein", "other"]
PartyRole = Literal["borrower", "co_borrower", "other"]


class EvidenceSourceContext(str, Enum):
    # borrower address
    TAX_RETURN_1040_TAXPAYER_ADDRESS_BLOCK = "tax_return_1040_taxpayer_address_block"
    W2_EMPLOYEE_ADDRESS_BLOCK = "w2_employee_address_block"
    CLOSING_DISCLOSURE_BORROWER_SECTION = "closing_disclosure_borrower_section"
    BANK_STATEMENT_ACCOUNT_HOLDER_ADDRESS_BLOCK = "bank_statement_account_holder_address_block"
    PAYSTUB_EMPLOYEE_INFO_BLOCK = "paystub_employee_info_block"
    PAYSTUB_HEADER_EMPLOYER_BLOCK = "paystub_header_employer_block"
    W2_EMPLOYER_ADDRESS_BLOCK = "w2_employer_address_block"
    # ssn
    TAX_RETURN_1040_TAXPAYER_SSN = "tax_return_1040_taxpayer_ssn"
    W2_EMPLOYEE_SSN = "w2_employee_ssn"
    # income
    W2_WAGES_BOXES_ANNUAL = "w2_wages_boxes_annual"
    TAX_RETURN_1040_SCHEDULE_C_NET_PROFIT = "tax_return_1040_schedule_c_net_profit"
    PAYSTUB_YTD_RATE_OF_PAY = "paystub_ytd_rate_of_pay"
    EVOE_VERIFICATION = "evoe_verification"
    LETTER_OF_EXPLANATION = "letter_of_explanation"
    OTHER = "other"


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# --------------------
# Fact model (extractor output)
# --------------------


class Evidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_id: str
    source_filename: str
    page_number: int = Field(ge=1)
    quote: str = ""
    evidence_source_context: Optional[str] = None
    proximity_score: Optional[int] = Field(default=None, ge=0, le=3)

    @field_validator("quote")
    @classmethod
    def _truncate_quote(cls, value: str) -> str:
        return value[:QUOTE_MAX_LENGTH]


class NameInProximity(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str = Field(min_length=1)
    evidence: List[Evidence] = Field(min_length=1)
    proximity_score: int = Field(ge=0, le=3)


class AddressValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    street1: Optional[str] = None
    street2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: str = Field(min_length=1)


class IncomePeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class IncomeValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float = Field(strict=True, allow_inf_nan=False)
    currency: str = "USD"
    frequency: Optional[IncomeFrequency] = None
    period: IncomePeriod
    employer: Optional[str] = None
    source_type: Optional[IncomeSourceType] = None


class _FactBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    evidence: List[Evidence] = Field(min_length=1)
    names_in_proximity: List[NameInProximity] = []


class AddressFact(_FactBase):
    fact_type: Literal["address"]
    value: AddressValue


class SsnFact(_FactBase):
    fact_type: Literal["ssn"]
    value: str = Field(min_length=1)


class IncomeFact(_FactBase):
    fact_type: Literal["income"]
    value: IncomeValue


class LoanNumberFact(_FactBase):
    fact_type: Literal["loan_number"]
    value: str


class EmployerNameFact(_FactBase):
    fact_type: Literal["employer_name"]
    value: str


Fact = Annotated[
    Union[AddressFact, SsnFact, IncomeFact, LoanNumberFact, EmployerNameFact],
    Field(discriminator="fact_type"),
]

FACT_ADAPTER: TypeAdapter = TypeAdapter(Fact)


class DocumentMetadata(BaseModel):
    document_id: str
    source_filename: str
    source_system: str
    source_doc_id: str
    raw_uri: Optional[str] = None
    discovered_at: Optional[str] = None


class FactExtractionResult(BaseModel):
    schema_version: str = "2.0"
    correlation_id: str
    document: DocumentMetadata
    extraction_mode: str = "text"
    # validated one by one during attribution so a bad fact never rejects the batch
    facts: List[Any]
    warnings: List[str] = []


# --------------------
# Attribution output (one document)
# --------------------


class ValueWithEvidence(BaseModel):
    value: str
    evidence: List[Evidence]


class AddressExtraction(BaseModel):
    type: str = "current"  # current | previous | mailing | property
    value: AddressValue
    evidence: List[Evidence]


class IncomeExtraction(BaseModel):
    source_type: IncomeSourceType = "other"
    employer: Optional[str] = None
    period: IncomePeriod
    amount: float
    currency: str = "USD"
    frequency: Optional[IncomeFrequency] = None
    evidence: List[Evidence]


class IdentifierExtraction(BaseModel):
    type: IdentifierType
    value: str
    evidence: List[Evidence]


class BorrowerExtraction(BaseModel):
    borrower_ref: str
    full_name: ValueWithEvidence
    zip: Optional[ValueWithEvidence] = None
    addresses: List[AddressExtraction] = []
    income_history: List[IncomeExtraction] = []
    identifiers: List[IdentifierExtraction] = []
    missing_fields: List[str] = []


class ApplicationParty(BaseModel):
    borrower_ref: str
    role: PartyRole = "borrower"


class ApplicationExtraction(BaseModel):
    application_ref: str
    loan_number: ValueWithEvidence
    property_address: Optional[AddressExtraction] = None
    parties: List[ApplicationParty] = []
    identifiers: List[IdentifierExtraction] = []
    missing_fields: List[str] = []


class AttributionResult(BaseModel):
    schema_version: str = "1.1.0"
    correlation_id: Optional[str] = None
    document: DocumentMetadata
    borrowers: List[BorrowerExtraction] = []
    applications: List[ApplicationExtraction] = []
    warnings: List[str] = []


# --------------------
# Read model (merged across documents)
# --------------------


class MergedAddress(BaseModel):
    type: str = "current"
    street1: Optional[str] = None
    street2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: str
    evidence: List[Evidence]
    confidence: ConfidenceLevel


class MergedIncome(BaseModel):
    source_type: IncomeSourceType
    employer: Optional[str] = None
    period_year: int
    amount: float
    currency: str
    frequency: Optional[IncomeFrequency] = None
    evidence: List[Evidence]
    confidence: ConfidenceLevel


class MergedIdentifier(BaseModel):
    type: IdentifierType
    value: str
    evidence: List[Evidence]
    confidence: ConfidenceLevel


class DocumentRef(BaseModel):
    document_id: str
    source_filename: str


class ApplicationLink(BaseModel):
    application_ref: str
    loan_number: str
    role: PartyRole
    evidence: List[Evidence] = []


class BorrowerRecord(BaseModel):
    borrower_ref: str
    full_name: str
    status: str  # COMPLETE | PARTIAL
    zip: Optional[str] = None
    addresses: List[MergedAddress] = []
    income_history: List[MergedIncome] = []
    identifiers: List[MergedIdentifier] = []
    applications: List[ApplicationLink] = []
    documents: List[DocumentRef] = []
    missing_fields: List[str] = []


class ApplicationPartyRecord(BaseModel):
    borrower_ref: str
    full_name: str
    role: PartyRole


class ApplicationRecord(BaseModel):
    application_ref: str
    loan_number: str
    parties: List[ApplicationPartyRecord] = []
    evidence: List[Evidence] = []
    documents: List[DocumentRef] = []
