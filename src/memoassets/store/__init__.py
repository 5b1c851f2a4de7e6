"""AssetStore backends and identity helpers for memoassets."""

from memoassets.store._file import FileAssetStore
from memoassets.store._memory import InMemoryAssetStore
from memoassets.store._store import (
    DEFAULT_EXTENSION,
    AssetEntry,
    AssetStore,
    compute_identity,
    extension_for_filename,
    extension_for_media_type,
    image_media_type,
    is_image_extension,
    is_valid_identity,
    media_type_for_extension,
    normalize_extension,
    split_identity,
)

__all__ = [
    "DEFAULT_EXTENSION",
    "AssetEntry",
    "AssetStore",
    "FileAssetStore",
    "InMemoryAssetStore",
    "compute_identity",
    "extension_for_filename",
    "extension_for_media_type",
    "image_media_type",
    "is_image_extension",
    "is_valid_identity",
    "media_type_for_extension",
    "normalize_extension",
    "split_identity",
]
