"""Configuration for the asset store and codec, with environment-variable loading."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from memoassets.codec import DEFAULT_RESOLVE_CACHE_SIZE, AssetReferenceCodec
from memoassets.store import DEFAULT_EXTENSION, AssetStore, FileAssetStore, normalize_extension

ENV_ROOT = "MEMOASSETS_ROOT"
ENV_DEFAULT_EXTENSION = "MEMOASSETS_DEFAULT_EXTENSION"
ENV_RESOLVE_CACHE_SIZE = "MEMOASSETS_RESOLVE_CACHE_SIZE"
ENV_LOG_LEVEL = "MEMOASSETS_LOG_LEVEL"

DEFAULT_ROOT = Path("~/.memoassets/images")


def setup_logging(level: str | int | None = None) -> None:
    """Configure a basic root handler for applications embedding memoassets.

    The library itself only emits through module loggers.
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, "INFO")
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@dataclass(frozen=True, slots=True)
class AssetConfig:
    """Where assets live and how the codec caches resolved images."""

    root: Path
    default_extension: str = DEFAULT_EXTENSION
    resolve_cache_size: int = DEFAULT_RESOLVE_CACHE_SIZE

    def __post_init__(self) -> None:
        """Validate and normalize fields."""
        extension = normalize_extension(self.default_extension)
        if extension is None:
            msg = f"default_extension {self.default_extension!r} is not a valid file extension."
            raise ValueError(msg)
        if self.resolve_cache_size < 0:
            msg = "resolve_cache_size must be >= 0."
            raise ValueError(msg)
        object.__setattr__(self, "root", Path(self.root).expanduser())
        object.__setattr__(self, "default_extension", extension)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AssetConfig:
        """Build a config from ``MEMOASSETS_*`` environment variables."""
        env = os.environ if environ is None else environ
        raw_cache_size = env.get(ENV_RESOLVE_CACHE_SIZE)
        if raw_cache_size is None or not raw_cache_size.strip():
            cache_size = DEFAULT_RESOLVE_CACHE_SIZE
        else:
            try:
                cache_size = int(raw_cache_size)
            except ValueError as exc:
                msg = f"{ENV_RESOLVE_CACHE_SIZE} must be an integer, got: {raw_cache_size!r}"
                raise ValueError(msg) from exc
        return cls(
            root=Path(env.get(ENV_ROOT) or DEFAULT_ROOT),
            default_extension=env.get(ENV_DEFAULT_EXTENSION) or DEFAULT_EXTENSION,
            resolve_cache_size=cache_size,
        )

    def open_store(self) -> FileAssetStore:
        """Open (and create if needed) the file-system store at ``root``."""
        return FileAssetStore(self.root, default_extension=self.default_extension)

    def build_codec(self, store: AssetStore | None = None) -> AssetReferenceCodec:
        """Build a codec over ``store``, opening the configured store when omitted."""
        return AssetReferenceCodec(
            store if store is not None else self.open_store(),
            resolve_cache_size=self.resolve_cache_size,
        )
