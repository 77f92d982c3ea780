# treewatch/watchdog/handlers.py

"""
Bridge from watchdog observer threads into the asyncio event streams
"""
import os
import asyncio
import logging
from typing import Any, Callable, Dict, List
from datetime import datetime

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
)

from .events import RawEvent, EventType
from .exceptions import AdapterError

logger = logging.getLogger(__name__)


def _decode(path) -> str:
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return path


def convert_event(event: FileSystemEvent) -> List[RawEvent]:
    """
    Convert a watchdog event into raw events

    A move becomes an OTHER event for the source and a CREATE for the
    destination, since editors often save by renaming a temporary file
    over the target. Directory modifications only report that a child
    changed and are classified as OTHER.

    Args:
        event: Watchdog event

    Returns:
        List of raw events (never empty)
    """
    src_path = _decode(event.src_path)

    if event.event_type == EVENT_TYPE_CREATED:
        return [RawEvent(src_path, EventType.CREATE)]

    if event.event_type == EVENT_TYPE_MODIFIED:
        if event.is_directory:
            return [RawEvent(src_path, EventType.OTHER)]
        return [RawEvent(src_path, EventType.WRITE)]

    if event.event_type == EVENT_TYPE_DELETED:
        return [RawEvent(src_path, EventType.REMOVE)]

    if event.event_type == EVENT_TYPE_MOVED:
        raw_events = [RawEvent(src_path, EventType.OTHER)]
        dest_path = _decode(getattr(event, 'dest_path', ''))
        if dest_path:
            raw_events.append(RawEvent(dest_path, EventType.CREATE))
        return raw_events

    # opened, closed
    return [RawEvent(src_path, EventType.OTHER)]


class EventHandler(FileSystemEventHandler):
    """
    Watchdog handler feeding raw events and errors into asyncio queues

    Runs on the observer thread; every hand-off goes through
    ``loop.call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop,
                 events: asyncio.Queue,
                 errors: asyncio.Queue):
        """
        Initialize event handler

        Args:
            loop: Event loop owning the queues
            events: Queue receiving RawEvent objects
            errors: Queue receiving AdapterError objects
        """
        self.loop = loop
        self.events = events
        self.errors = errors

        self.stats = {
            'events_received': 0,
            'errors': 0,
            'last_event': None,
        }

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event"""
        self.handle(event, convert_event)

    def handle(self, event: Any, convert: Callable[[Any], List[RawEvent]]):
        """
        Convert a native event and queue the resulting raw events

        Args:
            event: Event as produced by the notification backend
            convert: Converter from that event to raw events
        """
        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        try:
            raw_events = convert(event)
        except Exception as e:
            logger.error(f"Error converting event {event!r}: {e}")
            self.report_error(AdapterError(f"Failed to convert event {event!r}: {e}"))
            return

        for raw_event in raw_events:
            self._put(self.events, raw_event)

    def report_error(self, error: AdapterError):
        """Push an adapter error onto the error stream"""
        self.stats['errors'] += 1
        self._put(self.errors, error)

    def _put(self, queue: asyncio.Queue, item: Any):
        try:
            self.loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Loop closed (shutdown)
            logger.debug(f"Dropping {item} after event loop closed")

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
