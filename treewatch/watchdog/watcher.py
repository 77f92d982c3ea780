# treewatch/watchdog/watcher.py

"""
Notification adapter and subtree registration
"""
import os
import asyncio
import logging
from typing import FrozenSet, Iterator, List, Optional, Sequence, Set

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver
from watchdog.utils import platform

from .handlers import EventHandler
from .exceptions import AdapterError, CoverageError

logger = logging.getLogger(__name__)


class NotificationAdapter:
    """
    Wraps the OS notification facility as two asyncio streams

    ``events`` carries RawEvent objects for every registered directory and
    ``errors`` carries AdapterError objects. Directories are watched one
    by one without recursion, so the adapter covers exactly the
    registered set. On Linux all watches share a single inotify
    instance; elsewhere, and when polling, each directory is its own
    watchdog schedule.
    """

    def __init__(self, use_polling: bool = False, poll_interval: float = 1.0):
        """
        Initialize notification adapter

        Args:
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self.observer = None
        self.handler: Optional[EventHandler] = None
        self.events: Optional[asyncio.Queue] = None
        self.errors: Optional[asyncio.Queue] = None

        self._watched: Set[str] = set()
        self._sealed = False

    @property
    def is_open(self) -> bool:
        return self.observer is not None

    @property
    def uses_inotify(self) -> bool:
        return self.observer is not None and not isinstance(self.observer, BaseObserver)

    @property
    def watched_paths(self) -> FrozenSet[str]:
        """Directories registered with the observer"""
        return frozenset(self._watched)

    def open(self, loop: asyncio.AbstractEventLoop):
        """
        Acquire the observer and its streams

        Args:
            loop: Event loop the streams belong to
        """
        if self.is_open:
            raise AdapterError("Notification adapter is already open")

        self.events = asyncio.Queue()
        self.errors = asyncio.Queue()
        self.handler = EventHandler(loop, self.events, self.errors)

        if self.use_polling:
            self.observer = PollingObserver(timeout=self.poll_interval)
            logger.debug(f"Using polling observer (interval: {self.poll_interval}s)")
        elif platform.is_linux():
            from .inotify import InotifyTree
            self.observer = InotifyTree(self.handler)
            logger.debug("Using inotify")
            # The reader thread starts with the first watch
            return
        else:
            self.observer = Observer()
            logger.debug("Using OS event observer")

        # Start before scheduling so each emitter starts, and fails, inside add()
        self.observer.start()

    def add(self, path: str):
        """
        Register a single directory

        Args:
            path: Absolute directory path

        Raises:
            CoverageError: If the directory cannot be watched
        """
        if not self.is_open:
            raise CoverageError(path, AdapterError("Notification adapter is not open"))
        if self._sealed:
            raise CoverageError(path, AdapterError("Registered directories are sealed"))

        try:
            if self.uses_inotify:
                self.observer.add_watch(path)
            else:
                self.observer.schedule(self.handler, path, recursive=False)
        except Exception as e:
            raise CoverageError(path, e) from e

        self._watched.add(path)
        logger.debug(f"Watching directory: {path}")

    def seal(self):
        """Freeze the registered set"""
        self._sealed = True

    def check_health(self) -> Optional[AdapterError]:
        """
        Check that the observer and its emitters are still running

        Returns:
            An AdapterError describing the failure, or None when healthy
        """
        if not self.is_open:
            return AdapterError("Notification adapter is not open")

        if not self.observer.is_alive():
            return AdapterError("Observer thread stopped")

        if self.uses_inotify:
            return None

        for emitter in list(self.observer.emitters):
            # Emitters stop themselves when their directory is removed
            if not emitter.is_alive() and os.path.isdir(emitter.watch.path):
                return AdapterError(f"Lost watch on {emitter.watch.path}")

        return None

    async def supervise(self, interval: float):
        """
        Report dead observer threads on the error stream

        Args:
            interval: Seconds between checks
        """
        while True:
            await asyncio.sleep(interval)
            error = self.check_health()
            if error is not None:
                self.handler.report_error(error)
                return

    def close(self):
        """Stop the observer"""
        if self.observer is None:
            return

        try:
            self.observer.stop()
            if self.observer.is_alive():
                self.observer.join(timeout=10)
        finally:
            self.observer = None
        logger.debug("Notification adapter closed")


def walk_subtree(root: str, ignores: Sequence[str]) -> Iterator[str]:
    """
    Yield the root and every descendant directory outside ignored subtrees

    The root is always yielded. Any descendant whose basename is in
    ``ignores`` is skipped together with everything below it, and
    symbolic links to directories are never followed or yielded.

    Raises:
        CoverageError: If a directory cannot be listed
    """
    ignored = set(ignores)

    def onerror(error: OSError):
        raise CoverageError(error.filename or root, error)

    yield root

    for dirpath, dirnames, _ in os.walk(root, onerror=onerror):
        if dirpath == root and os.path.basename(root) in ignored:
            dirnames[:] = []
            continue
        dirnames[:] = sorted(
            name for name in dirnames
            if name not in ignored and not os.path.islink(os.path.join(dirpath, name))
        )
        for name in dirnames:
            yield os.path.join(dirpath, name)


def register_subtree(adapter: NotificationAdapter, root: str,
                     ignores: Sequence[str]) -> List[str]:
    """
    Register the watch root and its non-ignored descendants

    Args:
        adapter: Open notification adapter
        root: Absolute watch root
        ignores: Directory basenames to skip

    Returns:
        Registered directories in traversal order

    Raises:
        CoverageError: On the first directory that cannot be registered
    """
    registered = []
    for directory in walk_subtree(root, ignores):
        adapter.add(directory)
        registered.append(directory)

    adapter.seal()
    logger.info(f"Registered {len(registered)} directories under {root}")
    return registered
