"""Paste and drop images into a note, then resolve it for rendering."""

import asyncio
import tempfile
from pathlib import Path

from memoassets import (
    AssetConfig,
    ClipboardEvent,
    ClipboardItem,
    DroppedFile,
    DropEvent,
    DropIngestionPipeline,
    EventSource,
    PasteIngestionPipeline,
    Rect,
    has_inline_images,
    setup_logging,
)

PNG = b"\x89PNG\r\n\x1a\nexample"


def reader(data: bytes):
    async def read() -> bytes:
        return data

    return read


async def main() -> None:
    setup_logging("INFO")

    with tempfile.TemporaryDirectory() as tmpdir:
        config = AssetConfig(root=Path(tmpdir) / "images")
        codec = config.build_codec()

        # ---- One pipeline pair per editor view ----
        note = {"content": "# Trip notes\n"}

        def on_change(content: str) -> None:
            note["content"] = content

        def get_content() -> str:
            return note["content"]

        paste = PasteIngestionPipeline(codec, on_change, get_content=get_content)
        drop = DropIngestionPipeline(codec, on_change, get_content=get_content, get_caret=lambda: 13)
        source = EventSource()

        with paste.listen(source), drop.listen(source):
            # The same screenshot pasted twice is stored once.
            for _ in range(2):
                await source.dispatch("paste", ClipboardEvent(items=(ClipboardItem("image/png", reader(PNG)),)))

            files = (
                DroppedFile("beach.jpg", reader(b"\xff\xd8beach"), "image/jpeg"),
                DroppedFile("map.png", reader(b"\x89PNGmap")),
            )
            await source.dispatch("drop", DropEvent(x=5, y=5, bounds=Rect(0, 0, 100, 100), files=files))

        print(note["content"])
        print(f"\ninline images left: {has_inline_images(note['content'])}")
        print(f"stored assets: {[entry.identity for entry in codec.store.list_assets()]}")

        # ---- Read time ----
        rendered = codec.resolve(note["content"])
        print(f"resolved length: {len(rendered)} (content length {len(note['content'])})")


if __name__ == "__main__":
    asyncio.run(main())
