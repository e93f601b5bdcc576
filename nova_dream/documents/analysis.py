"""
Document Analysis — asks the model to summarize a stored document and pull
out amounts, dates and entities.

The file reaches the model as a short-lived signed URL (images and PDFs
only). The summary is written back as the document's description.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from nova_dream.assistant.client import AssistantClient, AssistantError, ChatMessage
from nova_dream.documents.library import is_analyzable
from nova_dream.models.document import DocumentAnalysis
from nova_dream.store.blobs import BlobStore
from nova_dream.store.records import QueryCache, RecordStore, StoreError

logger = logging.getLogger(__name__)

ANALYSIS_URL_TTL_SECONDS = 300
ANALYSIS_MAX_TOKENS = 2000

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def build_analysis_prompt(document: dict) -> str:
    return f"""You are an expert document analyst. Analyze this document and extract its key information.

The document is named "{document.get("name", "")}" and belongs to the segment "{document.get("segment") or "Unclassified"}".

INSTRUCTIONS:
1. Summarize the content in 2-3 sentences at most
2. Extract every financial amount (with currency and context)
3. Extract every important date and its context
4. Identify entities (companies, people, products)
5. Determine the document type (invoice, contract, quote, note, etc.)
6. Suggest one relevant action (e.g. "Add a 500€ e-commerce expense")

Reply ONLY with valid JSON in this format:
{{
  "summary": "Short summary of the document",
  "extractedData": {{
    "amounts": [{{"value": 500.00, "currency": "EUR", "description": "Invoice total"}}],
    "dates": [{{"date": "2026-01-15", "context": "Issue date"}}],
    "entities": ["Company name", "Product name"]
  }},
  "documentType": "invoice",
  "suggestedAction": "Add a 500€ e-commerce expense"
}}"""


def parse_analysis(content: str) -> DocumentAnalysis:
    """
    Read the model's JSON reply, fenced or bare.

    A reply that is not valid analysis JSON still yields an analysis: its
    first 300 characters become the summary.
    """
    match = _FENCED_JSON.search(content)
    raw = (match.group(1) if match else content).strip()
    try:
        return DocumentAnalysis.model_validate(json.loads(raw))
    except ValueError:
        logger.warning("Unparseable analysis reply: %s", content[:200])
        return DocumentAnalysis(summary=content[:300], document_type="unknown")


class DocumentAnalyzer:
    """Runs the model over one document and stores the summary."""

    def __init__(
        self,
        store: RecordStore,
        blobs: BlobStore,
        client: AssistantClient,
        cache: Optional[QueryCache] = None,
    ):
        self.store = store
        self.blobs = blobs
        self.client = client
        self.cache = cache

    def _message(self, document: dict) -> ChatMessage:
        parts: List[Dict[str, Any]] = [{"type": "text", "text": build_analysis_prompt(document)}]
        mime_type = document.get("mime_type") or ""
        if is_analyzable(mime_type):
            url = self.blobs.create_signed_url(document["file_path"], ANALYSIS_URL_TTL_SECONDS)
            if mime_type.startswith("image/"):
                parts.append({"type": "image_url", "image_url": {"url": url}})
            else:
                parts.append({"type": "file", "file": {"url": url}})
        return ChatMessage(role="user", content=parts)

    def analyze(self, document_id: str, owner_id: str) -> DocumentAnalysis:
        """Analyze a document. StoreError for unknown ids, AssistantError for the model."""
        document = self.store.get("documents", document_id, owner_id)
        reply = self.client.complete(
            None, [self._message(document)], max_tokens=ANALYSIS_MAX_TOKENS
        )
        if not reply:
            raise AssistantError("No analysis content received", status_code=502)

        analysis = parse_analysis(reply)
        self.store.update("documents", document_id, {"description": analysis.summary}, owner_id)
        if self.cache is not None:
            self.cache.invalidate("documents")
        logger.info("Document %s analyzed as %s", document_id, analysis.document_type)
        return analysis

    def analyze_in_background(self, document_id: str, owner_id: str) -> None:
        """Upload follow-up: a failed analysis leaves the document as uploaded."""
        try:
            self.analyze(document_id, owner_id)
        except (AssistantError, StoreError) as e:
            logger.warning("Background analysis of %s failed: %s", document_id, e)
