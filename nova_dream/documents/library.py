"""
Document Library — uploaded files in blob storage, described by rows in the
`documents` collection.

Behavioral Contract:
- An upload is a blob plus a row. If the row cannot be written the blob is
  removed again, so no orphan file survives a failed upload.
- Deleting removes the blob first, then the row. A blob that is already
  gone does not block removing the row.
"""

import logging
import re
import time
from typing import Optional

from nova_dream.store.blobs import BlobStore
from nova_dream.store.records import RecordStore, StoreError

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9.-]")

ANALYZABLE_PREFIXES = ("image/",)
ANALYZABLE_TYPES = ("application/pdf",)


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_NAME.sub("_", name)


def document_path(owner_id: str, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    """Storage path for an upload: <owner>/<epoch ms>_<sanitized name>."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{owner_id}/{timestamp_ms}_{sanitize_file_name(file_name)}"


def is_analyzable(mime_type: Optional[str]) -> bool:
    """Images and PDFs can be handed to the model as files."""
    if not mime_type:
        return False
    return mime_type.startswith(ANALYZABLE_PREFIXES) or mime_type in ANALYZABLE_TYPES


def upload_document(
    store: RecordStore,
    blobs: BlobStore,
    owner_id: str,
    name: str,
    data: bytes,
    mime_type: Optional[str] = None,
    segment: Optional[str] = None,
    mode: str = "work",
    category: str = "other",
    description: Optional[str] = None,
    path: Optional[str] = None,
) -> dict:
    """Store a file and register it. Returns the documents row."""
    mime_type = mime_type or "application/octet-stream"
    path = path or document_path(owner_id, name)
    blobs.put(path, data, content_type=mime_type)

    try:
        return store.insert("documents", {
            "name": name,
            "file_path": path,
            "file_size": len(data),
            "mime_type": mime_type,
            "segment": segment,
            "mode": mode,
            "category": category,
            "description": description,
        }, owner_id)[0]
    except StoreError:
        logger.error("Document row for %s failed; removing uploaded file", path)
        blobs.delete(path)
        raise


def delete_document(
    store: RecordStore, blobs: BlobStore, document_id: str, owner_id: str
) -> dict:
    """Remove a document's file and row. Returns the removed row."""
    row = store.get("documents", document_id, owner_id)
    if blobs.exists(row["file_path"]):
        blobs.delete(row["file_path"])
    else:
        logger.warning("File %s already missing; deleting row only", row["file_path"])
    store.delete("documents", document_id, owner_id)
    return row

