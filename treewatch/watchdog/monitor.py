# treewatch/watchdog/monitor.py

"""
Main watcher: subtree registration, debouncing and pattern dispatch
"""
import os
import re
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from datetime import datetime

from ..utils.file_utils import abs_path
from .debounce import Debouncer, QUIET_PERIOD
from .events import RawEvent
from .exceptions import WatcherError
from .patterns import PathHandler, PatternRegistry, PatternRule
from .watcher import NotificationAdapter, register_subtree

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Invokes every handler whose pattern matches a changed file's name

    Handlers run synchronously in registration order. Their exceptions
    are not caught.
    """

    def __init__(self, registry: PatternRegistry):
        self.registry = registry
        self.stats = {
            'events_dispatched': 0,
            'handlers_invoked': 0,
        }

    def dispatch(self, event: Optional[RawEvent]) -> int:
        """
        Dispatch a coalesced event

        Args:
            event: Coalesced event, None is skipped

        Returns:
            Number of handlers invoked
        """
        if event is None:
            return 0

        filename = os.path.basename(event.path)
        handlers = self.registry.match(filename)
        self.stats['events_dispatched'] += 1

        for handler in handlers:
            self.stats['handlers_invoked'] += 1
            handler(event.path)

        if not handlers:
            logger.debug(f"No pattern matched {filename}")
        return len(handlers)


class Watcher:
    """
    Watches a directory subtree and dispatches changed paths by filename

    Construction is idle. :meth:`start` registers the subtree and then
    runs for the life of the process; rules may be added at any time.
    """

    def __init__(self, root: Union[str, os.PathLike],
                 ignores: Sequence[str] = (),
                 quiet_period: float = QUIET_PERIOD,
                 health_interval: float = 1.0,
                 use_polling: bool = False,
                 poll_interval: float = 1.0):
        """
        Initialize watcher

        Args:
            root: Directory to watch (``~`` and relative paths allowed)
            ignores: Directory basenames whose subtrees are not watched
            quiet_period: Debounce delay in seconds
            health_interval: Seconds between observer liveness checks
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.root = abs_path(root)
        self.ignores: List[str] = list(ignores)
        self.quiet_period = quiet_period
        self.health_interval = health_interval
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self.registry = PatternRegistry()
        self.dispatcher = Dispatcher(self.registry)
        self.adapter: Optional[NotificationAdapter] = None
        self.debouncer: Optional[Debouncer] = None

        self.is_watching = False
        self.start_time: Optional[datetime] = None

    @classmethod
    def from_config(cls, config) -> 'Watcher':
        """
        Build a watcher from a WatchConfig

        Args:
            config: ``treewatch.utils.config.WatchConfig``
        """
        return cls(
            root=config.root,
            ignores=config.ignores,
            quiet_period=config.quiet_period,
            health_interval=config.health_interval,
            use_polling=config.use_polling,
            poll_interval=config.poll_interval,
        )

    def add(self, pattern: Union[str, re.Pattern], handler: PathHandler) -> PatternRule:
        """
        Register a handler for filenames matching a regular expression

        Replaces the handler of an equal pattern. Safe to call from any
        thread, before or after start.
        """
        return self.registry.add(pattern, handler)

    def ignore(self, *names: str):
        """
        Exclude directory basenames from registration

        Raises:
            WatcherError: If the watcher has already started
        """
        if self.is_watching:
            raise WatcherError("Cannot change ignored directories while watching")
        self.ignores.extend(names)

    async def start(self):
        """
        Watch the subtree and dispatch changes until the process exits

        Raises:
            CoverageError: If a directory cannot be registered
            AdapterError: If the observer fails while watching
            Exception: Whatever a handler raises
        """
        if self.is_watching:
            raise WatcherError(f"Already watching {self.root}")

        loop = asyncio.get_running_loop()
        ignores = tuple(self.ignores)
        self.adapter = NotificationAdapter(
            use_polling=self.use_polling,
            poll_interval=self.poll_interval,
        )
        self.debouncer = Debouncer(self.quiet_period)
        mailbox: asyncio.Queue = asyncio.Queue(maxsize=1)
        tasks = []

        self.is_watching = True
        try:
            try:
                self.adapter.open(loop)
                register_subtree(self.adapter, self.root, ignores)
            except WatcherError as e:
                logger.error(f"Watcher for {self.root} failed: {e}")
                raise
            self.start_time = datetime.now()

            background = asyncio.ensure_future(
                self.debouncer.run(self.adapter.events, self.adapter.errors, mailbox)
            )
            tasks.append(background)
            tasks.append(asyncio.ensure_future(self.adapter.supervise(self.health_interval)))

            logger.info(f"Watching {self.root} (ignoring: {list(ignores)}, quiet period: {self.quiet_period}s)")
            await self._consume(mailbox, background)

        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.adapter.close()
            self.is_watching = False

    async def _consume(self, mailbox: asyncio.Queue, background: asyncio.Future):
        """Dispatch coalesced events until the background loop fails"""
        while True:
            getter = asyncio.ensure_future(mailbox.get())
            try:
                await asyncio.wait({getter, background}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not getter.done():
                    getter.cancel()

            if getter.done() and not getter.cancelled():
                self.dispatcher.dispatch(getter.result())
            elif background.done():
                try:
                    background.result()
                except WatcherError as e:
                    logger.error(f"Watcher for {self.root} failed: {e}")
                    raise

    def run(self):
        """Blocking entry point for hosts without an event loop"""
        asyncio.run(self.start())

    def get_status(self) -> Dict[str, Any]:
        """Get watcher status"""
        debouncer_stats = self.debouncer.get_stats() if self.debouncer else {}

        return {
            'root': self.root,
            'ignores': list(self.ignores),
            'is_watching': self.is_watching,
            'start_time': self.start_time,
            'watched_directories': len(self.adapter.watched_paths) if self.adapter else 0,
            'patterns': self.registry.patterns(),
            'stats': {
                'events_received': debouncer_stats.get('events_received', 0),
                'events_ignored': debouncer_stats.get('events_ignored', 0),
                'events_coalesced': debouncer_stats.get('events_coalesced', 0),
                **self.dispatcher.stats,
            },
        }


def new_watcher(root: Union[str, os.PathLike]) -> Watcher:
    """Create an idle watcher for a directory"""
    return Watcher(root)
