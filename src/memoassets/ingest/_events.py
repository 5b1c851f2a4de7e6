"""Editor event model: clipboard and drag/drop events, and a scoped event source."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from memoassets.store import extension_for_filename, extension_for_media_type, is_image_extension, media_type_for_extension

logger = logging.getLogger(__name__)

PayloadReader = Callable[[], Awaitable[bytes]]
EventHandler = Callable[[object], object]

PASTE = "paste"
DRAG_ENTER = "dragenter"
DRAG_OVER = "dragover"
DRAG_LEAVE = "dragleave"
DROP = "drop"


@dataclass(frozen=True, slots=True)
class Rect:
    """Bounding rectangle of a drop target in client coordinates."""

    left: float
    top: float
    right: float
    bottom: float

    def contains(self, x: float, y: float) -> bool:
        """Return whether a point lies within the rectangle (edges included)."""
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True, slots=True)
class ClipboardItem:
    """One typed clipboard item whose bytes are materialized on demand."""

    media_type: str
    read: PayloadReader

    @property
    def is_image(self) -> bool:
        """Return whether the item carries an image payload."""
        return self.media_type.lower().startswith("image/")


@dataclass(frozen=True, slots=True)
class DroppedFile:
    """One file from a drop payload."""

    name: str
    read: PayloadReader
    media_type: str | None = None

    @property
    def resolved_media_type(self) -> str | None:
        """Return the declared media type, falling back to one guessed from the file name."""
        if self.media_type:
            return self.media_type
        extension = extension_for_filename(self.name)
        if not is_image_extension(extension):
            return None
        return media_type_for_extension(extension)

    @property
    def is_image(self) -> bool:
        """Return whether the file is an image by media type or file name."""
        return extension_for_media_type(self.resolved_media_type) is not None


@dataclass(slots=True)
class _CancelableEvent:
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        """Suppress the platform's default handling of this event."""
        self.default_prevented = True


@dataclass(slots=True)
class ClipboardEvent(_CancelableEvent):
    """A paste event carrying zero or more clipboard items."""

    items: tuple[ClipboardItem, ...] = ()


@dataclass(slots=True)
class DragEvent(_CancelableEvent):
    """A drag enter/over/leave event with the pointer position and target bounds."""

    x: float = 0.0
    y: float = 0.0
    bounds: Rect | None = None

    @property
    def inside(self) -> bool:
        """Return whether the pointer is within the drop target's bounds."""
        return self.bounds is None or self.bounds.contains(self.x, self.y)


@dataclass(slots=True)
class DropEvent(DragEvent):
    """A drop event carrying the dropped files in payload order."""

    files: tuple[DroppedFile, ...] = ()


class EventSource:
    """Channel-keyed event dispatcher standing in for the editor's DOM/widget events."""

    def __init__(self) -> None:
        """Initialize with no subscriptions."""
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Register a handler for one channel."""
        self._handlers.setdefault(channel, []).append(handler)

    def unsubscribe(self, channel: str, handler: EventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(channel)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[channel]

    def handler_count(self, channel: str) -> int:
        """Return the number of handlers subscribed to a channel."""
        return len(self._handlers.get(channel, ()))

    async def dispatch(self, channel: str, event: object) -> list[object]:
        """Deliver an event to every handler of a channel, awaiting coroutine handlers."""
        results: list[object] = []
        for handler in tuple(self._handlers.get(channel, ())):
            result = handler(event)
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        return results

    @contextmanager
    def listening(self, channel: str, handler: EventHandler) -> Iterator[None]:
        """Subscribe for the duration of a ``with`` block, always unsubscribing on exit."""
        self.subscribe(channel, handler)
        logger.debug("Subscribed %r to %s", handler, channel)
        try:
            yield
        finally:
            self.unsubscribe(channel, handler)
            logger.debug("Unsubscribed %r from %s", handler, channel)
