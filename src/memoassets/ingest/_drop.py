"""DropIngestionPipeline: drag state tracking and multi-file image drops at the caret."""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from memoassets.codec import format_inline_image, snap_to_span_boundary
from memoassets.errors import ImageDecodeError
from memoassets.ingest._events import DRAG_ENTER, DRAG_LEAVE, DRAG_OVER, DROP

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from memoassets.codec import AssetReferenceCodec
    from memoassets.ingest._events import DragEvent, DroppedFile, DropEvent, EventSource

logger = logging.getLogger(__name__)


class DragState(enum.Enum):
    """Whether a drag is currently hovering over the drop target."""

    IDLE = "idle"
    DRAG_OVER = "drag_over"


@dataclass(frozen=True, slots=True)
class DropResult:
    """Committed content after a drop and the caret position following the inserted images."""

    content: str
    caret: int


class DropIngestionPipeline:
    """Handle drag-and-drop events for one editor view.

    Every image file of a drop is inserted, in payload order, at the caret.
    Non-image and unreadable files are skipped.
    """

    def __init__(
        self,
        codec: AssetReferenceCodec,
        on_content_change: Callable[[str], object],
        *,
        get_content: Callable[[], str],
        get_caret: Callable[[], int] | None = None,
    ) -> None:
        """Initialize with the codec, the content-change sink and content/caret getters.

        Without ``get_caret`` drops insert at the end of the content.
        """
        self._codec = codec
        self._on_content_change = on_content_change
        self._get_content = get_content
        self._get_caret = get_caret
        self.state = DragState.IDLE

    def _set_state(self, state: DragState) -> None:
        if state is not self.state:
            logger.debug("Drag state %s -> %s", self.state.value, state.value)
        self.state = state

    def handle_drag_enter(self, event: DragEvent) -> None:
        """Enter the drag-over state when the pointer is inside the target."""
        event.prevent_default()
        if event.inside:
            self._set_state(DragState.DRAG_OVER)

    def handle_drag_over(self, event: DragEvent) -> None:
        """Keep the drop target accepting; re-enter drag-over when back inside."""
        event.prevent_default()
        if event.inside:
            self._set_state(DragState.DRAG_OVER)

    def handle_drag_leave(self, event: DragEvent) -> None:
        """Leave the drag-over state only when the pointer is outside the target's bounds.

        Leave events also fire when crossing child elements, so nesting alone is
        not a reliable signal.
        """
        event.prevent_default()
        if not event.inside:
            self._set_state(DragState.IDLE)

    async def handle_drop(self, event: DropEvent) -> DropResult | None:
        """Insert the dropped images at the caret and publish the committed content."""
        event.prevent_default()
        self._set_state(DragState.IDLE)
        if not event.files:
            return None

        content = self._get_content()
        caret = self._get_caret() if self._get_caret is not None else len(content)
        result = await self.ingest_files(event.files, content, caret)
        if result is None:
            return None
        self._on_content_change(result.content)
        return result

    async def ingest_files(self, files: Iterable[DroppedFile], content: str, caret: int) -> DropResult | None:
        """Insert image files at ``caret`` and commit the result.

        The caret is clamped into the content and moved out of any image span it
        falls inside. The returned caret is that position plus the length of the
        inserted, committed references. Return ``None`` when no file could be
        ingested, so the caller's content is left alone.
        """
        caret = snap_to_span_boundary(content, max(0, min(caret, len(content))))
        spans: list[str] = []
        for dropped in files:
            if not dropped.is_image:
                logger.debug("Skipping non-image drop %s", dropped.name)
                continue
            try:
                data = await dropped.read()
                spans.append(format_inline_image(data, dropped.resolved_media_type, alt=dropped.name) + "\n")
            except (ImageDecodeError, OSError) as exc:
                logger.warning("Skipping dropped file %s: %s", dropped.name, exc)

        if not spans:
            return None

        before, inserted, after = await asyncio.to_thread(
            self._codec.commit_parts, (content[:caret], "".join(spans), content[caret:])
        )
        return DropResult(content=before + inserted + after, caret=len(before) + len(inserted))

    @contextmanager
    def listen(self, source: EventSource) -> Iterator[None]:
        """Subscribe to drag and drop events for the duration of a ``with`` block."""
        with ExitStack() as stack:
            stack.enter_context(source.listening(DRAG_ENTER, self.handle_drag_enter))
            stack.enter_context(source.listening(DRAG_OVER, self.handle_drag_over))
            stack.enter_context(source.listening(DRAG_LEAVE, self.handle_drag_leave))
            stack.enter_context(source.listening(DROP, self.handle_drop))
            yield
