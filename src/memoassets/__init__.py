"""memoassets: content-addressed image assets for markdown notes."""

import importlib.metadata as importlib_metadata

from memoassets.codec import AssetReference, AssetReferenceCodec, InlineImage, has_inline_images
from memoassets.config import AssetConfig, setup_logging
from memoassets.errors import (
    AssetIntegrityError,
    AssetNotFoundError,
    ImageDecodeError,
    MemoAssetsError,
    StoreDeleteError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from memoassets.ingest import (
    ClipboardEvent,
    ClipboardItem,
    DragEvent,
    DragState,
    DropEvent,
    DroppedFile,
    DropIngestionPipeline,
    DropResult,
    EventSource,
    PasteIngestionPipeline,
    PasteState,
    Rect,
)
from memoassets.store import AssetEntry, AssetStore, FileAssetStore, InMemoryAssetStore


def _detect_version() -> str:
    """Return installed package version or a local fallback when metadata is unavailable."""
    try:
        return importlib_metadata.version("memoassets")
    except importlib_metadata.PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _detect_version()

__all__ = [
    "AssetConfig",
    "AssetEntry",
    "AssetIntegrityError",
    "AssetNotFoundError",
    "AssetReference",
    "AssetReferenceCodec",
    "AssetStore",
    "ClipboardEvent",
    "ClipboardItem",
    "DragEvent",
    "DragState",
    "DropEvent",
    "DropIngestionPipeline",
    "DropResult",
    "DroppedFile",
    "EventSource",
    "FileAssetStore",
    "ImageDecodeError",
    "InMemoryAssetStore",
    "InlineImage",
    "MemoAssetsError",
    "PasteIngestionPipeline",
    "PasteState",
    "Rect",
    "StoreDeleteError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "has_inline_images",
    "setup_logging",
]
