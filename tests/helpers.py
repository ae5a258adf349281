def ev(context=None, page=1, quote="", document_id="doc-1", filename="doc-1.pdf"):
    """Evidence dict as an extractor would emit it."""
    return {
        "document_id": document_id,
        "source_filename": filename,
        "page_number": page,
        "quote": quote,
        "evidence_source_context": context,
    }
