# treewatch/watchdog/inotify.py

"""
Single inotify instance carrying one watch per registered directory (Linux)
"""
import os
import logging
from typing import List

from watchdog.observers.inotify_c import Inotify, InotifyConstants, InotifyEvent
from watchdog.utils import BaseThread

from .events import RawEvent, EventType
from .exceptions import AdapterError
from .handlers import EventHandler

logger = logging.getLogger(__name__)

# Reads, opens and closes are never requested
WATCH_MASK = (
    InotifyConstants.IN_MODIFY
    | InotifyConstants.IN_ATTRIB
    | InotifyConstants.IN_CREATE
    | InotifyConstants.IN_DELETE
    | InotifyConstants.IN_MOVED_FROM
    | InotifyConstants.IN_MOVED_TO
    | InotifyConstants.IN_DELETE_SELF
    | InotifyConstants.IN_MOVE_SELF
)


def convert_inotify_event(event: InotifyEvent) -> List[RawEvent]:
    """
    Convert an inotify event into raw events

    Classification follows the event mask: IN_MODIFY is a write,
    IN_CREATE and IN_MOVED_TO are creations, IN_DELETE and IN_DELETE_SELF
    are removals. Attribute changes (IN_ATTRIB), the source side of a
    move and watch bookkeeping (IN_IGNORED, IN_MOVE_SELF) are OTHER.
    """
    src_path = os.fsdecode(event.src_path)

    if event.is_create or event.is_moved_to:
        event_type = EventType.CREATE
    elif event.is_modify:
        event_type = EventType.WRITE
    elif event.is_delete or event.is_delete_self:
        event_type = EventType.REMOVE
    else:
        event_type = EventType.OTHER

    return [RawEvent(src_path, event_type)]


class InotifyTree(BaseThread):
    """
    Reader thread over one inotify instance

    Every directory is an individual, non-recursive watch on the same
    instance. A removed directory's watch is dropped by the kernel
    (IN_IGNORED) and the reader carries on with the rest. Reading starts
    with the first watch.
    """

    def __init__(self, handler: EventHandler):
        super().__init__()
        self.handler = handler
        self._inotify = None

    def add_watch(self, path: str):
        """
        Watch a single directory

        Raises:
            OSError: If the kernel refuses the watch
        """
        encoded = os.fsencode(path)
        if self._inotify is None:
            self._inotify = Inotify(encoded, event_mask=WATCH_MASK)
            self.start()
        else:
            self._inotify.add_watch(encoded)

    def run(self):
        while self.should_keep_running():
            try:
                inotify_events = self._inotify.read_events()
            except Exception as e:
                if self.should_keep_running():
                    logger.error(f"Inotify read failed: {e}")
                    self.handler.report_error(AdapterError(f"Inotify read failed: {e}"))
                return

            for inotify_event in inotify_events:
                self.handler.handle(inotify_event, convert_inotify_event)

    def on_thread_stop(self):
        if self._inotify is not None:
            self._inotify.close()
