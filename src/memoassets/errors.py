"""Typed errors for memoassets."""


class MemoAssetsError(Exception):
    """Base exception for all memoassets errors."""


class ImageDecodeError(MemoAssetsError):
    """Raised when an image payload cannot be read or has no usable image media type."""

    def __init__(self, reason: str, *, source: str | None = None) -> None:
        """Initialize with a reason and an optional source label (file name, media type)."""
        self.reason = reason
        self.source = source
        if source is None:
            super().__init__(f"Image could not be decoded: {reason}")
        else:
            super().__init__(f"Image could not be decoded ({source}): {reason}")


class StoreError(MemoAssetsError):
    """Base exception for asset store failures."""

    def __init__(self, identity: str, message: str) -> None:
        """Initialize with the asset identity the failure relates to."""
        self.identity = identity
        super().__init__(message)


class StoreWriteError(StoreError):
    """Raised when the backing store rejects a save."""

    def __init__(self, identity: str, reason: str) -> None:
        """Initialize with the identity being written and the backend reason."""
        self.reason = reason
        super().__init__(identity, f"Failed to write asset {identity}: {reason}")


class StoreReadError(StoreError):
    """Raised when a stored asset cannot be read."""

    def __init__(self, identity: str, reason: str) -> None:
        """Initialize with the identity being read and the backend reason."""
        self.reason = reason
        super().__init__(identity, f"Failed to read asset {identity}: {reason}")


class AssetNotFoundError(StoreReadError):
    """Raised when no asset with the requested identity exists."""

    def __init__(self, identity: str) -> None:
        """Initialize with the missing asset's identity."""
        super().__init__(identity, "not found")


class AssetIntegrityError(StoreReadError):
    """Raised when stored bytes no longer match the digest in their identity."""

    def __init__(self, identity: str, expected: str, actual: str) -> None:
        """Initialize with the identity and mismatched digests."""
        self.expected = expected
        self.actual = actual
        super().__init__(identity, f"integrity check failed, expected md5={expected}, got {actual}")


class StoreDeleteError(StoreError):
    """Raised when an existing asset could not be removed."""

    def __init__(self, identity: str, reason: str) -> None:
        """Initialize with the identity being deleted and the backend reason."""
        self.reason = reason
        super().__init__(identity, f"Failed to delete asset {identity}: {reason}")
