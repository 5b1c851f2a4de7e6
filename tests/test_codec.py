"""Tests for AssetReferenceCodec and the span helpers."""

import base64
import hashlib

import pytest

from memoassets.codec import (
    AssetReferenceCodec,
    find_asset_references,
    find_inline_images,
    format_asset_reference,
    format_inline_image,
    has_inline_images,
    snap_to_span_boundary,
)
from memoassets.errors import ImageDecodeError, StoreWriteError
from memoassets.store import InMemoryAssetStore

PNG = b"\x89PNG\r\n\x1a\n0123456789"
GIF = b"GIF89a fake gif"


def _inline(data: bytes, media_type: str = "image/png", alt: str = "image") -> str:
    return f"![{alt}](data:{media_type};base64,{base64.b64encode(data).decode('ascii')})"


def _identity(data: bytes, extension: str) -> str:
    return f"{hashlib.md5(data).hexdigest()}.{extension}"


class FailingStore(InMemoryAssetStore):
    """Store that rejects the n-th physical save."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.calls = 0

    def save(self, data: bytes, extension: str | None = None) -> str:
        self.calls += 1
        if self.calls == self.fail_on:
            raise StoreWriteError("pending", "disk full")
        return super().save(data, extension)


def test_commit_replaces_inline_image_with_reference() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)

    committed = codec.commit(f"before\n{_inline(PNG, alt='shot')}\nafter")

    identity = _identity(PNG, "png")
    assert committed == f"before\n![shot](image://{identity})\nafter"
    assert store.get(identity) == PNG


def test_commit_derives_extension_from_media_type() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    committed = codec.commit(_inline(GIF, "image/gif") + _inline(PNG, "image/jpeg"))
    assert [ref.identity for ref in find_asset_references(committed)] == [
        _identity(GIF, "gif"),
        _identity(PNG, "jpg"),
    ]


def test_commit_empty_alt_becomes_image() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    assert codec.commit(_inline(PNG, alt="")).startswith("![image](image://")


def test_commit_leaves_plain_text_and_other_links_alone() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    content = "# Title\n![logo](https://example.com/logo.png)\n[doc](data:text/plain;base64,aGk=)\n"
    assert codec.commit(content) == content


def test_commit_preserves_order_of_surrounding_text() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    committed = codec.commit(f"a{_inline(PNG)}b{_inline(GIF, 'image/gif')}c")
    text_only = committed
    for ref in find_asset_references(committed):
        text_only = text_only.replace(format_asset_reference(ref.identity, ref.alt), "|")
    assert text_only == "a|b|c"


def test_commit_leaves_no_inline_images() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    content = "\n".join(_inline(bytes([index]) * 20) for index in range(5))
    committed = codec.commit(content)
    assert has_inline_images(content) is True
    assert has_inline_images(committed) is False
    assert find_inline_images(committed) == ()


def test_commit_is_idempotent() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    once = codec.commit(f"text {_inline(PNG)} more")
    assert codec.commit(once) == once
    assert store.write_count == 1


def test_commit_same_image_twice_stores_once() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    committed = codec.commit(f"{_inline(PNG)}\n{_inline(PNG)}")
    refs = find_asset_references(committed)
    assert len(refs) == 2
    assert refs[0].identity == refs[1].identity
    assert store.write_count == 1


def test_commit_accepts_wrapped_base64() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    encoded = base64.b64encode(PNG).decode("ascii")
    wrapped = f"![image](data:image/png;base64,{encoded[:8]}\n{encoded[8:]})"
    assert find_asset_references(codec.commit(wrapped))[0].identity == _identity(PNG, "png")


def test_commit_is_atomic_when_store_fails() -> None:
    store = FailingStore(fail_on=2)
    codec = AssetReferenceCodec(store)
    content = f"one {_inline(PNG)} two {_inline(GIF, 'image/gif')} three"

    with pytest.raises(StoreWriteError):
        codec.commit(content)

    assert store.calls == 2
    assert has_inline_images(content) is True


def test_commit_passes_through_data_links_without_image_bytes() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    literals = (
        "example: ![x](data:image/png;base64,)",
        "![bad](data:image/png;base64,@@not base64@@)",
        "![short](data:image/png;base64,abc)",
    )
    content = f"{_inline(PNG)}\n" + "\n".join(literals)

    committed = codec.commit(content)

    assert committed == format_asset_reference(_identity(PNG, "png")) + "\n" + "\n".join(literals)
    assert store.write_count == 1
    assert has_inline_images(committed) is False


def test_has_inline_images_ignores_undecodable_payloads() -> None:
    assert has_inline_images("![x](data:image/png;base64,)") is False
    assert has_inline_images("![x](data:image/png;base64,abc)") is False
    assert has_inline_images(_inline(PNG)) is True


def test_commit_parts_commits_fragments_together() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    before, middle, after = codec.commit_parts(("head ", _inline(PNG), " tail"))
    assert before == "head "
    assert after == " tail"
    assert middle == format_asset_reference(_identity(PNG, "png"))


def test_resolve_inlines_stored_asset() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    committed = codec.commit(f"see {_inline(PNG, alt='pic')}")
    assert codec.resolve(committed) == f"see {_inline(PNG, alt='pic')}"


def test_resolve_uses_media_type_from_extension() -> None:
    store = InMemoryAssetStore()
    identity = store.save(PNG, "jpeg")
    resolved = AssetReferenceCodec(store).resolve(format_asset_reference(identity))
    assert resolved == _inline(PNG, "image/jpeg")


def test_resolve_missing_asset_uses_placeholder_and_continues() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    present = store.save(PNG, "png")
    missing = _identity(b"gone", "png")
    content = f"{format_asset_reference(missing, 'lost')}\n{format_asset_reference(present)}"

    resolved = codec.resolve(content)

    assert resolved == f"![lost](image-missing://{missing})\n{_inline(PNG)}"


class CountingStore(InMemoryAssetStore):
    """Store that counts reads."""

    def __init__(self) -> None:
        super().__init__()
        self.reads = 0

    def get(self, identity: str) -> bytes:
        self.reads += 1
        return super().get(identity)


def test_resolve_serves_repeated_references_from_cache() -> None:
    store = CountingStore()
    codec = AssetReferenceCodec(store)
    reference = format_asset_reference(store.save(PNG, "png"))

    assert codec.resolve(f"{reference}\n{reference}") == f"{_inline(PNG)}\n{_inline(PNG)}"
    assert store.reads == 1


def test_resolve_cache_does_not_outlive_deleted_asset() -> None:
    store = InMemoryAssetStore()
    codec = AssetReferenceCodec(store)
    identity = store.save(PNG, "png")
    reference = format_asset_reference(identity)

    assert codec.resolve(reference) == _inline(PNG)
    store.delete(identity)
    assert codec.resolve(reference) == f"![image](image-missing://{identity})"

    store.save(PNG, "png")
    assert codec.resolve(reference) == _inline(PNG)


def test_resolve_cache_is_bounded() -> None:
    store = CountingStore()
    codec = AssetReferenceCodec(store, resolve_cache_size=1)
    first = format_asset_reference(store.save(PNG, "png"))
    second = format_asset_reference(store.save(GIF, "gif"))

    codec.resolve(first)
    codec.resolve(second)
    codec.resolve(first)

    assert store.reads == 3


def test_forget_and_clear_cache() -> None:
    store = CountingStore()
    codec = AssetReferenceCodec(store)
    identity = store.save(PNG, "png")
    reference = format_asset_reference(identity)

    codec.resolve(reference)
    codec.forget(identity)
    codec.resolve(reference)
    codec.clear_cache()
    codec.resolve(reference)

    assert store.reads == 3


def test_rejects_negative_cache_size() -> None:
    with pytest.raises(ValueError, match="resolve_cache_size"):
        AssetReferenceCodec(InMemoryAssetStore(), resolve_cache_size=-1)


def test_references_in_order() -> None:
    codec = AssetReferenceCodec(InMemoryAssetStore())
    committed = codec.commit(f"{_inline(GIF, 'image/gif')} {_inline(PNG)}")
    assert [ref.identity for ref in codec.references(committed)] == [_identity(GIF, "gif"), _identity(PNG, "png")]


def test_format_inline_image_validates_payload() -> None:
    with pytest.raises(ImageDecodeError):
        format_inline_image(b"", "image/png")
    with pytest.raises(ImageDecodeError):
        format_inline_image(PNG, "text/plain")
    with pytest.raises(ImageDecodeError):
        format_inline_image(PNG, None)


def test_format_strips_bracket_characters_from_alt() -> None:
    span = format_inline_image(PNG, "image/png", alt="shot [1].png")
    assert span.startswith("![shot  1 .png](data:image/png;base64,")
    assert len(find_inline_images(span)) == 1


@pytest.mark.parametrize(
    "media_type",
    ["image/png; charset=binary", "image/png ", "IMAGE/PNG", " image/png;q=1"],
)
def test_format_inline_image_normalizes_media_type(media_type: str) -> None:
    span = format_inline_image(PNG, media_type)
    assert span == _inline(PNG)
    assert has_inline_images(span) is True


@pytest.mark.parametrize("media_type", ["image/", "image", "image/;q=1", "image/ png"])
def test_format_inline_image_rejects_media_type_without_subtype(media_type: str) -> None:
    with pytest.raises(ImageDecodeError):
        format_inline_image(PNG, media_type)


def test_snap_to_span_boundary() -> None:
    reference = format_asset_reference(_identity(PNG, "png"))
    content = f"ab{reference}cd"
    start = 2
    end = 2 + len(reference)

    assert snap_to_span_boundary(content, 1) == 1
    assert snap_to_span_boundary(content, start) == start
    assert snap_to_span_boundary(content, start + 3) == start
    assert snap_to_span_boundary(content, end - 3) == end
    assert snap_to_span_boundary(content, end) == end
    assert snap_to_span_boundary(content, end + 1) == end + 1
