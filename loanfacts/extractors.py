"""
Extractor interface and registry.

Extractors turn one document's page texts into facts. They live outside this
package; the registry is built once at startup from whatever extractors the
service wires in and is passed by reference to the stage that needs it.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from loanfacts.schemas import DocumentMetadata

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = (
    "w2",
    "paystub",
    "bank_statement",
    "closing_disclosure",
    "tax_return_1040",
    "evoe",
    "transmittal_summary",
    "letter_of_explanation",
    "title_report",
    "unknown",
)


class ExtractorResult(BaseModel):
    facts: List[Any] = []
    warnings: List[str] = []
    extraction_method: str = "llm"  # algorithmic | llm | skip


@runtime_checkable
class FactExtractor(Protocol):
    document_type: str
    description: str

    def extract(self, pages: List[str], document: DocumentMetadata) -> ExtractorResult:
        ...


def build_extractor_registry(extractors: Iterable[FactExtractor]) -> Mapping[str, FactExtractor]:
    """Read-only document_type -> extractor map. Two extractors for one type is a wiring error."""
    table = {}
    for extractor in extractors:
        doc_type = extractor.document_type
        if doc_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unknown document type: {doc_type}")
        if doc_type in table:
            raise ValueError(f"Duplicate extractor for document type: {doc_type}")
        table[doc_type] = extractor
        logger.debug("Registered extractor for %s: %s", doc_type, extractor.description)
    return MappingProxyType(table)


def get_extractor(registry: Mapping[str, FactExtractor], document_type: str) -> Optional[FactExtractor]:
    return registry.get(document_type)


def require_extractor(registry: Mapping[str, FactExtractor], document_type: str) -> FactExtractor:
    extractor = registry.get(document_type)
    if extractor is None:
        raise KeyError(f"No extractor registered for document type: {document_type}")
    return extractor
