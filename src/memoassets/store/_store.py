"""AssetStore: protocol for content-addressed image storage, plus identity helpers."""

from __future__ import annotations

import hashlib
import mimetypes
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Protocol, runtime_checkable

DEFAULT_EXTENSION = "png"

_EXTENSION_ALIASES = {
    "jpeg": "jpg",
    "jpe": "jpg",
    "pjpeg": "jpg",
    "tif": "tiff",
    "svg+xml": "svg",
    "x-icon": "ico",
    "vnd.microsoft.icon": "ico",
    "x-ms-bmp": "bmp",
}

_IMAGE_EXTENSIONS = frozenset({"png", "jpg", "gif", "webp", "bmp", "svg", "tiff", "ico", "avif", "heic"})

_EXTENSION_RE = re.compile(r"[a-z0-9]+")
_SUBTYPE_RE = re.compile(r"[a-z0-9][a-z0-9.+-]*")
_IDENTITY_RE = re.compile(r"(?P<digest>[0-9a-f]{32})\.(?P<extension>[a-z0-9]+)")


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def normalize_extension(extension: str | None) -> str | None:
    """Normalize a file extension, returning ``None`` when it is unusable.

    Lower-case, strip a leading dot, and collapse aliases (``jpeg`` -> ``jpg``)
    so that equivalent media types map to the same identity.
    """
    if extension is None:
        return None
    value = extension.strip().lower().lstrip(".")
    value = _EXTENSION_ALIASES.get(value, value)
    if not _EXTENSION_RE.fullmatch(value):
        return None
    return value


def image_media_type(media_type: str | None) -> str | None:
    """Reduce a media type to its ``image/<subtype>`` essence, or ``None`` if it is not an image type.

    Parameters and surrounding whitespace are dropped: ``"image/PNG; q=1 "`` -> ``"image/png"``.
    """
    if media_type is None:
        return None
    essence = media_type.split(";", 1)[0].strip().lower()
    major, _, subtype = essence.partition("/")
    if major != "image" or not _SUBTYPE_RE.fullmatch(subtype):
        return None
    return f"image/{subtype}"


def extension_for_media_type(media_type: str | None) -> str | None:
    """Derive a normalized extension from an ``image/*`` media type."""
    essence = image_media_type(media_type)
    if essence is None:
        return None
    return normalize_extension(essence.partition("/")[2])


def extension_for_filename(filename: str) -> str | None:
    """Derive a normalized extension from a file name's suffix."""
    suffix = PurePath(filename).suffix
    if not suffix:
        return None
    return normalize_extension(suffix)


def is_image_extension(extension: str | None) -> bool:
    """Return whether a normalized extension names a known image format."""
    return extension in _IMAGE_EXTENSIONS


def media_type_for_extension(extension: str) -> str:
    """Return the ``image/*`` media type used when re-encoding a stored asset."""
    guessed, _ = mimetypes.guess_type(f"asset.{extension}")
    if guessed is not None and guessed.startswith("image/"):
        return guessed
    return f"image/{extension}"


def compute_identity(data: bytes, extension: str | None = None, *, default_extension: str = DEFAULT_EXTENSION) -> str:
    """Return ``<md5 hex>.<extension>`` for the given bytes."""
    digest = hashlib.md5(data, usedforsecurity=False).hexdigest()
    return f"{digest}.{normalize_extension(extension) or default_extension}"


def split_identity(identity: str) -> tuple[str, str] | None:
    """Split an identity into ``(digest, extension)``, or ``None`` if malformed."""
    match = _IDENTITY_RE.fullmatch(identity)
    if match is None:
        return None
    return match.group("digest"), match.group("extension")


def is_valid_identity(identity: str) -> bool:
    """Return whether a string is a well-formed asset identity."""
    return split_identity(identity) is not None


@dataclass(frozen=True, slots=True)
class AssetEntry:
    """One stored asset and its store-side metadata."""

    identity: str
    size: int
    stored_at: datetime


@runtime_checkable
class AssetStore(Protocol):
    """Content-addressed asset storage protocol.

    Identities are derived from the stored bytes, so saving identical bytes
    twice is a no-op after the first write. Deleting an absent asset returns
    ``False`` rather than raising.
    """

    def save(self, data: bytes, extension: str | None = None) -> str:
        """Store bytes if absent and return their identity."""
        ...

    def get(self, identity: str) -> bytes:
        """Return stored bytes, raising ``AssetNotFoundError`` when absent."""
        ...

    def has(self, identity: str) -> bool:
        """Check whether an asset exists."""
        ...

    def delete(self, identity: str) -> bool:
        """Delete an asset. Return ``True`` when something was removed."""
        ...

    def list_assets(self) -> tuple[AssetEntry, ...]:
        """List stored assets ordered by ``(stored_at, identity)``."""
        ...
