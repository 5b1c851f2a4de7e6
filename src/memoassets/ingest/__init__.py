"""Clipboard paste and drag-and-drop ingestion pipelines."""

from memoassets.ingest._drop import DragState, DropIngestionPipeline, DropResult
from memoassets.ingest._events import (
    DRAG_ENTER,
    DRAG_LEAVE,
    DRAG_OVER,
    DROP,
    PASTE,
    ClipboardEvent,
    ClipboardItem,
    DragEvent,
    DroppedFile,
    DropEvent,
    EventSource,
    Rect,
)
from memoassets.ingest._paste import PasteIngestionPipeline, PasteState

__all__ = [
    "DRAG_ENTER",
    "DRAG_LEAVE",
    "DRAG_OVER",
    "DROP",
    "PASTE",
    "ClipboardEvent",
    "ClipboardItem",
    "DragEvent",
    "DragState",
    "DropEvent",
    "DropIngestionPipeline",
    "DropResult",
    "DroppedFile",
    "EventSource",
    "PasteIngestionPipeline",
    "PasteState",
    "Rect",
]
