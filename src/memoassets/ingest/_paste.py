"""PasteIngestionPipeline: turn a pasted clipboard image into a committed asset reference."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import TYPE_CHECKING

from memoassets.codec import format_inline_image
from memoassets.errors import ImageDecodeError
from memoassets.ingest._events import PASTE

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractContextManager

    from memoassets.codec import AssetReferenceCodec
    from memoassets.ingest._events import ClipboardEvent, EventSource

logger = logging.getLogger(__name__)


class PasteState(enum.Enum):
    """Progress of the most recent paste."""

    IDLE = "idle"
    DECODING = "decoding"
    COMMITTING = "committing"
    DONE = "done"


class PasteIngestionPipeline:
    """Handle clipboard paste events for one editor view.

    Only the first image item of a paste is ingested. The inline span is
    appended to the content snapshot taken when the paste arrives, committed,
    and the whole committed content is handed to ``on_content_change``. The
    commit runs in a worker thread so a slow store write only delays this paste.
    Two overlapping pastes each swap in their own result; the last to finish wins.
    """

    def __init__(
        self,
        codec: AssetReferenceCodec,
        on_content_change: Callable[[str], object],
        *,
        get_content: Callable[[], str],
    ) -> None:
        """Initialize with the codec, the content-change sink and a content getter."""
        self._codec = codec
        self._on_content_change = on_content_change
        self._get_content = get_content
        self.state = PasteState.IDLE

    async def handle_paste(self, event: ClipboardEvent) -> str | None:
        """Ingest the first image item of a paste event.

        Return the committed content, or ``None`` when the event carried no
        image or the image could not be read. ``StoreWriteError`` propagates
        and leaves the live content untouched.
        """
        item = next((candidate for candidate in event.items if candidate.is_image), None)
        if item is None:
            return None

        event.prevent_default()
        content = self._get_content()
        self.state = PasteState.DECODING
        try:
            data = await item.read()
            span = format_inline_image(data, item.media_type)
        except (ImageDecodeError, OSError) as exc:
            logger.warning("Ignoring pasted %s item: %s", item.media_type, exc)
            self.state = PasteState.IDLE
            return None

        self.state = PasteState.COMMITTING
        try:
            committed = await asyncio.to_thread(self._codec.commit, f"{content}\n{span}")
        except Exception:
            self.state = PasteState.IDLE
            raise

        self.state = PasteState.DONE
        self._on_content_change(committed)
        return committed

    def listen(self, source: EventSource) -> AbstractContextManager[None]:
        """Subscribe to paste events for the duration of a ``with`` block."""
        return source.listening(PASTE, self.handle_paste)
