"""AssetReferenceCodec: rewrite note content between inline and committed image forms.

Two span shapes are recognized inside markdown note content:

- inline image: ``![alt](data:image/png;base64,iVBORw0...)``, which carries the
  bytes and only exists between a paste/drop and the next commit
- asset reference: ``![alt](image://<md5>.<ext>)``, which names a stored asset

``commit`` turns the first shape into the second and is the only form that may
be handed to note persistence. ``resolve`` is the read-time inverse.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from memoassets.errors import AssetNotFoundError, ImageDecodeError, StoreReadError
from memoassets.store import extension_for_media_type, image_media_type, media_type_for_extension

if TYPE_CHECKING:
    from collections.abc import Iterable

    from memoassets.store import AssetStore

logger = logging.getLogger(__name__)

ASSET_SCHEME = "image://"
MISSING_SCHEME = "image-missing://"
DEFAULT_ALT = "image"
DEFAULT_RESOLVE_CACHE_SIZE = 64

INLINE_IMAGE_RE = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\(data:(?P<media_type>image/[A-Za-z0-9][A-Za-z0-9.+-]*);base64,"
    r"(?P<payload>\s*[A-Za-z0-9+/=][A-Za-z0-9+/=\s]*)\)"
)
ASSET_REFERENCE_RE = re.compile(r"!\[(?P<alt>[^\]]*)\]\(image://(?P<identity>[^)\s]+)\)")
IMAGE_SPAN_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")

_ALT_UNSAFE_RE = re.compile(r"[\[\]\r\n]+")


@dataclass(frozen=True, slots=True)
class InlineImage:
    """An inline image span found in content, with its decoded bytes."""

    alt: str
    media_type: str
    data: bytes
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class AssetReference:
    """An asset reference span found in content."""

    alt: str
    identity: str
    start: int
    end: int


def _clean_alt(alt: str | None) -> str:
    """Strip characters that would break the span syntax; empty alt becomes ``image``."""
    cleaned = _ALT_UNSAFE_RE.sub(" ", alt or "").strip()
    return cleaned or DEFAULT_ALT


def format_inline_image(data: bytes, media_type: str | None, alt: str | None = None) -> str:
    """Encode bytes as an inline image span.

    The media type is reduced to its ``image/<subtype>`` essence so the span is
    always one ``commit`` recognizes. Raise ``ImageDecodeError`` for empty
    payloads or media types without a usable image subtype.
    """
    essence = image_media_type(media_type)
    if essence is None:
        raise ImageDecodeError("media type is not an image type", source=media_type)
    if not data:
        raise ImageDecodeError("payload is empty", source=essence)
    encoded = base64.b64encode(data).decode("ascii")
    return f"![{_clean_alt(alt)}](data:{essence};base64,{encoded})"


def format_asset_reference(identity: str, alt: str | None = None) -> str:
    """Format an asset reference span for a stored identity."""
    return f"![{_clean_alt(alt)}]({ASSET_SCHEME}{identity})"


def format_missing_placeholder(identity: str, alt: str | None = None) -> str:
    """Format the broken-image marker used when a reference cannot be resolved."""
    return f"![{_clean_alt(alt)}]({MISSING_SCHEME}{identity})"


def _decode_payload(payload: str) -> bytes | None:
    """Decode one inline payload, tolerating whitespace wrapped into the base64 text."""
    compact = "".join(payload.split())
    try:
        data = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None
    return data or None


def find_inline_images(content: str) -> tuple[InlineImage, ...]:
    """Return all inline image spans in content order.

    A ``data:image/...`` link whose payload does not decode to bytes carries no
    image and is left alone as ordinary text.
    """
    spans: list[InlineImage] = []
    for match in INLINE_IMAGE_RE.finditer(content):
        data = _decode_payload(match.group("payload"))
        if data is None:
            continue
        spans.append(
            InlineImage(
                alt=match.group("alt"),
                media_type=match.group("media_type").lower(),
                data=data,
                start=match.start(),
                end=match.end(),
            )
        )
    return tuple(spans)


def find_asset_references(content: str) -> tuple[AssetReference, ...]:
    """Return all asset reference spans in content order."""
    return tuple(
        AssetReference(
            alt=match.group("alt"),
            identity=match.group("identity"),
            start=match.start(),
            end=match.end(),
        )
        for match in ASSET_REFERENCE_RE.finditer(content)
    )


def has_inline_images(content: str) -> bool:
    """Return whether content still holds inline image bytes."""
    return bool(find_inline_images(content))


def snap_to_span_boundary(content: str, offset: int) -> int:
    """Move an offset that falls inside an image span to the span's nearer edge."""
    for match in IMAGE_SPAN_RE.finditer(content):
        if match.start() >= offset:
            break
        if offset < match.end():
            return match.start() if offset - match.start() <= match.end() - offset else match.end()
    return offset


class AssetReferenceCodec:
    """Bidirectional rewriting between inline image spans and asset references."""

    def __init__(
        self,
        store: AssetStore,
        *,
        resolve_cache_size: int = DEFAULT_RESOLVE_CACHE_SIZE,
    ) -> None:
        """Initialize with the store that holds committed assets."""
        if resolve_cache_size < 0:
            msg = "resolve_cache_size must be >= 0."
            raise ValueError(msg)
        self._store = store
        self._resolve_cache_size = resolve_cache_size
        self._resolve_cache: OrderedDict[str, str] = OrderedDict()

    @property
    def store(self) -> AssetStore:
        """Return the backing asset store."""
        return self._store

    def commit(self, content: str) -> str:
        """Replace every inline image span with an asset reference.

        Every payload is saved before any text is rewritten, so a
        ``StoreWriteError`` propagates without returning partially committed
        content. Existing references and ``data:`` links that do not decode to
        image bytes are left untouched.
        """
        (committed,) = self.commit_parts((content,))
        return committed

    def commit_parts(self, parts: Iterable[str]) -> tuple[str, ...]:
        """Commit several content fragments as one all-or-nothing operation."""
        fragments = tuple(parts)
        spans = [find_inline_images(fragment) for fragment in fragments]

        identities = [
            [self._store.save(span.data, extension_for_media_type(span.media_type)) for span in fragment_spans]
            for fragment_spans in spans
        ]

        committed: list[str] = []
        for fragment, fragment_spans, fragment_identities in zip(fragments, spans, identities):
            if not fragment_spans:
                committed.append(fragment)
                continue
            pieces: list[str] = []
            cursor = 0
            for span, identity in zip(fragment_spans, fragment_identities):
                pieces.append(fragment[cursor : span.start])
                pieces.append(format_asset_reference(identity, span.alt))
                cursor = span.end
            pieces.append(fragment[cursor:])
            committed.append("".join(pieces))
            logger.debug("Committed %d inline image(s)", len(fragment_spans))
        return tuple(committed)

    def resolve(self, content: str) -> str:
        """Replace asset references with inline image spans for rendering.

        A reference whose asset cannot be read is replaced with a broken-image
        marker; the rest of the content is still resolved. Cached results are
        only served while the store still has the asset. Never persist the result.
        """

        def _substitute(match: re.Match[str]) -> str:
            alt = match.group("alt")
            identity = match.group("identity")
            try:
                data_uri = self._data_uri(identity)
            except StoreReadError as exc:
                logger.warning("Could not resolve asset %s: %s", identity, exc)
                return format_missing_placeholder(identity, alt)
            return f"![{_clean_alt(alt)}]({data_uri})"

        return ASSET_REFERENCE_RE.sub(_substitute, content)

    def references(self, content: str) -> tuple[AssetReference, ...]:
        """Return the asset references held by content, in order."""
        return find_asset_references(content)

    def clear_cache(self) -> None:
        """Drop all cached resolve results."""
        self._resolve_cache.clear()

    def forget(self, identity: str) -> None:
        """Drop one cached resolve result."""
        self._resolve_cache.pop(identity, None)

    def _data_uri(self, identity: str) -> str:
        """Return a data URI for a stored asset, using the bounded resolve cache."""
        cached = self._resolve_cache.get(identity)
        if cached is not None:
            if not self._store.has(identity):
                self._resolve_cache.pop(identity, None)
                raise AssetNotFoundError(identity)
            self._resolve_cache.move_to_end(identity)
            return cached

        data = self._store.get(identity)
        extension = identity.rsplit(".", 1)[-1] if "." in identity else ""
        media_type = media_type_for_extension(extension) if extension else "image/png"
        data_uri = f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"

        if self._resolve_cache_size > 0:
            self._resolve_cache[identity] = data_uri
            while len(self._resolve_cache) > self._resolve_cache_size:
                self._resolve_cache.popitem(last=False)
        return data_uri
