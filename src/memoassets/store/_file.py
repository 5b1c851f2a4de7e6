"""FileAssetStore: file-system-based content-addressed asset storage."""

import hashlib
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from memoassets.errors import AssetIntegrityError, AssetNotFoundError, StoreDeleteError, StoreReadError, StoreWriteError
from memoassets.store._store import (
    DEFAULT_EXTENSION,
    AssetEntry,
    compute_identity,
    is_valid_identity,
    normalize_extension,
    split_identity,
)

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".incoming-"
_TEMP_SUFFIX = ".tmp"


class FileAssetStore:
    """File-system-based asset store.

    Store each asset as ``<root>/<identity>``. Writes go to a temporary file in
    the same directory and are published with ``os.replace``, so concurrent
    saves of the same identity never expose a truncated file.
    """

    def __init__(self, root: str | Path, *, default_extension: str = DEFAULT_EXTENSION) -> None:
        """Initialize with a root directory, creating it if needed."""
        extension = normalize_extension(default_extension)
        if extension is None:
            msg = f"default_extension {default_extension!r} is not a valid file extension."
            raise ValueError(msg)
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._default_extension = extension

    @property
    def root(self) -> Path:
        """Return the root directory path."""
        return self._root

    def _asset_path(self, identity: str) -> Path | None:
        """Resolve the asset path, rejecting malformed identities."""
        if not is_valid_identity(identity):
            return None
        return self._root / identity

    def save(self, data: bytes, extension: str | None = None) -> str:
        """Write bytes under their content identity unless already present."""
        identity = compute_identity(data, extension, default_extension=self._default_extension)
        path = self._root / identity
        if path.exists():
            logger.debug("Asset %s already stored, skipping write", identity)
            return identity

        try:
            fd, temp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, suffix=_TEMP_SUFFIX, dir=self._root)
        except OSError as exc:
            raise StoreWriteError(identity, str(exc)) from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, path)
        except OSError as exc:
            Path(temp_name).unlink(missing_ok=True)
            raise StoreWriteError(identity, str(exc)) from exc

        logger.info("Asset saved: %s (%d bytes)", path, len(data))
        return identity

    def get(self, identity: str) -> bytes:
        """Read an asset file and verify that its bytes still match the identity."""
        path = self._asset_path(identity)
        if path is None or not path.is_file():
            raise AssetNotFoundError(identity)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise AssetNotFoundError(identity) from exc
        except OSError as exc:
            raise StoreReadError(identity, str(exc)) from exc

        parts = split_identity(identity)
        expected = parts[0] if parts is not None else ""
        actual = hashlib.md5(data, usedforsecurity=False).hexdigest()
        if actual != expected:
            raise AssetIntegrityError(identity, expected, actual)
        return data

    def has(self, identity: str) -> bool:
        """Check whether an asset file exists."""
        path = self._asset_path(identity)
        return path is not None and path.is_file()

    def delete(self, identity: str) -> bool:
        """Delete an asset file. Absent or malformed identities return ``False``."""
        path = self._asset_path(identity)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreDeleteError(identity, str(exc)) from exc
        logger.info("Asset deleted: %s", path)
        return True

    def list_assets(self) -> tuple[AssetEntry, ...]:
        """List stored assets, skipping in-flight temporary files."""
        entries: list[AssetEntry] = []
        for path in self._root.iterdir():
            if not is_valid_identity(path.name) or not path.is_file():
                continue
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            entries.append(
                AssetEntry(
                    identity=path.name,
                    size=stat.st_size,
                    stored_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return tuple(sorted(entries, key=lambda entry: (entry.stored_at, entry.identity)))
