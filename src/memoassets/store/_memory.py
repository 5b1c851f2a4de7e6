"""InMemoryAssetStore: dict-based asset storage for development and testing."""

from __future__ import annotations

import hashlib
import logging

from memoassets.errors import AssetIntegrityError, AssetNotFoundError
from memoassets.store._store import (
    DEFAULT_EXTENSION,
    AssetEntry,
    compute_identity,
    normalize_extension,
    split_identity,
    utc_now,
)

logger = logging.getLogger(__name__)


class InMemoryAssetStore:
    """In-memory asset store for development and testing.

    ``write_count`` counts physical writes, so deduplicated saves are observable.
    """

    def __init__(self, *, default_extension: str = DEFAULT_EXTENSION) -> None:
        """Initialize an empty in-memory store."""
        extension = normalize_extension(default_extension)
        if extension is None:
            msg = f"default_extension {default_extension!r} is not a valid file extension."
            raise ValueError(msg)
        self._default_extension = extension
        self._blobs: dict[str, bytes] = {}
        self._entries: dict[str, AssetEntry] = {}
        self.write_count = 0

    def save(self, data: bytes, extension: str | None = None) -> str:
        """Store bytes under their content identity unless already present."""
        identity = compute_identity(data, extension, default_extension=self._default_extension)
        if identity in self._blobs:
            logger.debug("Asset %s already stored, skipping write", identity)
            return identity
        self._blobs[identity] = bytes(data)
        self._entries[identity] = AssetEntry(identity=identity, size=len(data), stored_at=utc_now())
        self.write_count += 1
        return identity

    def get(self, identity: str) -> bytes:
        """Retrieve bytes and verify them against the identity's digest."""
        data = self._blobs.get(identity)
        parts = split_identity(identity)
        if data is None or parts is None:
            raise AssetNotFoundError(identity)
        actual = hashlib.md5(data, usedforsecurity=False).hexdigest()
        if actual != parts[0]:
            raise AssetIntegrityError(identity, parts[0], actual)
        return data

    def has(self, identity: str) -> bool:
        """Check whether an asset exists."""
        return identity in self._blobs

    def delete(self, identity: str) -> bool:
        """Delete an asset by identity."""
        self._entries.pop(identity, None)
        return self._blobs.pop(identity, None) is not None

    def list_assets(self) -> tuple[AssetEntry, ...]:
        """List stored assets ordered by ``(stored_at, identity)``."""
        return tuple(sorted(self._entries.values(), key=lambda entry: (entry.stored_at, entry.identity)))
