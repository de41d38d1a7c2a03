# backend/webwallet/db/documents.py
"""Key/document store contract used by the portfolio store.

Contract:
    get(key)                               -> document | None
    upsert(key, document, expected_version)

``expected_version`` drives optimistic concurrency:
    None  unconditional insert-or-replace
    0     the key must not exist yet, or hold a document without a ``version``
    n > 0 the stored document's ``version`` must equal n
A mismatch raises WriteConflictError and leaves the stored document untouched.
"""

from __future__ import annotations
import asyncio
import copy
from typing import Any, Dict, Optional, Protocol

from webwallet.core.errors import WriteConflictError


class DocumentStore(Protocol):
    async def get(self, key: str) -> Optional[Dict[str, Any]]: ...
    async def upsert(
        self, key: str, document: Dict[str, Any], expected_version: Optional[int] = None
    ) -> None: ...
    async def ping(self) -> bool: ...


class InMemoryDocumentStore:
    """Process-local store. Documents are deep-copied on the way in and out."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    async def upsert(
        self, key: str, document: Dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        async with self._lock:
            current = self._documents.get(key)
            if expected_version is not None:
                stored_version = current.get("version") if current is not None else None
                if expected_version == 0 and stored_version is not None:
                    raise WriteConflictError(f"document {key!r} already exists")
                if expected_version > 0 and stored_version != expected_version:
                    raise WriteConflictError(
                        f"document {key!r} is at version {stored_version}, expected {expected_version}"
                    )
            self._documents[key] = {**copy.deepcopy(document), "_id": key}

    async def ping(self) -> bool:
        return True
