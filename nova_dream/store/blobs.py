"""
Blob Store — opaque file storage for uploaded documents and generated reports.

Prototype: in-memory with HMAC-signed download URLs.
"""

import hashlib
import hmac
import time
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from nova_dream.store.records import StoreError


class BlobStore:
    """In-memory object storage for a single bucket."""

    def __init__(
        self,
        bucket: str = "documents",
        base_url: str = "http://localhost/storage/v1/object/sign",
        secret: str = "nova-dev-secret",
    ):
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self._secret = secret.encode()
        self._objects: Dict[str, Tuple[bytes, str]] = {}

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Store an object. Refuses to overwrite unless upsert is set."""
        if path in self._objects and not upsert:
            raise StoreError(f"Object already exists: {path}")
        self._objects[path] = (bytes(data), content_type)
        return path

    def get(self, path: str) -> bytes:
        if path not in self._objects:
            raise StoreError(f"Object not found: {path}")
        return self._objects[path][0]

    def content_type(self, path: str) -> Optional[str]:
        entry = self._objects.get(path)
        return entry[1] if entry else None

    def exists(self, path: str) -> bool:
        return path in self._objects

    def delete(self, path: str) -> None:
        if path not in self._objects:
            raise StoreError(f"Object not found: {path}")
        del self._objects[path]

    def create_signed_url(
        self, path: str, ttl_seconds: int, now: Optional[float] = None
    ) -> str:
        """Time-limited download URL for an existing object."""
        if path not in self._objects:
            raise StoreError(f"Object not found: {path}")
        expires = int((now if now is not None else time.time()) + ttl_seconds)
        token = self._sign(path, expires)
        return (
            f"{self.base_url}/{self.bucket}/{quote(path)}"
            f"?token={token}&expires={expires}"
        )

    def verify_signature(
        self, path: str, token: str, expires: int, now: Optional[float] = None
    ) -> bool:
        """Check a token produced by create_signed_url."""
        current = now if now is not None else time.time()
        if current > expires:
            return False
        return hmac.compare_digest(token, self._sign(path, expires))

    def _sign(self, path: str, expires: int) -> str:
        message = f"{self.bucket}/{path}:{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()
