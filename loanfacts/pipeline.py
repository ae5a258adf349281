from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from loanfacts.attribution import attribute_facts, parse_fact
from loanfacts.dedup import deduplicate_facts
from loanfacts.extractors import FactExtractor, get_extractor, require_extractor
from loanfacts.schemas import AttributionResult, DocumentMetadata
from loanfacts.weights import WeightPolicy

logger = logging.getLogger(__name__)


def _parsed_or_raw(raw: Any) -> Any:
    # malformed facts stay raw so attribution reports them
    try:
        return parse_fact(raw)
    except ValidationError:
        return raw


def process_document(
    registry: Mapping[str, FactExtractor],
    document_type: str,
    pages: List[str],
    document: DocumentMetadata,
    policy: Optional[WeightPolicy] = None,
    correlation_id: Optional[str] = None,
) -> AttributionResult:
    """Extract, dedupe and attribute one document. Unregistered types fall back to the `unknown` extractor."""
    extractor = get_extractor(registry, document_type)
    if extractor is None:
        logger.info(
            "No extractor for %s, using unknown (document_id=%s)", document_type, document.document_id
        )
        extractor = require_extractor(registry, "unknown")

    extracted = extractor.extract(pages, document)
    facts = deduplicate_facts([_parsed_or_raw(f) for f in extracted.facts])
    result = attribute_facts(facts, document, policy, correlation_id)
    result.warnings = [*extracted.warnings, *result.warnings]
    return result
