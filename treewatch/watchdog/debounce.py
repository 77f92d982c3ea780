# treewatch/watchdog/debounce.py

"""
Quiet-period debouncing for raw file system events
"""
import asyncio
import logging
from typing import Dict, Optional, Any
from dataclasses import dataclass

from .events import RawEvent, is_of_interest
from .exceptions import AdapterError

logger = logging.getLogger(__name__)

QUIET_PERIOD = 0.5  # seconds


@dataclass
class PendingEvent:
    """Latest event of interest waiting for its quiet period to elapse"""
    event: RawEvent
    deadline: float
    count: int = 1


class Debouncer:
    """
    Single-slot, latest-wins debouncer

    Every event of interest replaces the pending one and restarts the
    quiet period, whatever its path. When the quiet period elapses the
    pending event is put into the mailbox and the slot is cleared, so a
    burst across several files delivers only the last file's event.

    All state belongs to the coroutine running :meth:`run`.
    """

    def __init__(self, quiet_period: float = QUIET_PERIOD):
        """
        Initialize debouncer

        Args:
            quiet_period: Seconds without new events before delivery
        """
        self.quiet_period = quiet_period
        self.pending: Optional[PendingEvent] = None

        self.stats = {
            'events_received': 0,
            'events_ignored': 0,
            'events_coalesced': 0,
        }

    def offer(self, event: RawEvent, now: float) -> bool:
        """
        Feed a raw event into the slot

        Args:
            event: Raw event
            now: Current loop time

        Returns:
            True if the event replaced the pending slot
        """
        self.stats['events_received'] += 1

        if not is_of_interest(event):
            self.stats['events_ignored'] += 1
            return False

        count = self.pending.count + 1 if self.pending else 1
        self.pending = PendingEvent(event=event, deadline=now + self.quiet_period, count=count)
        return True

    def timeout(self, now: float) -> Optional[float]:
        """Seconds until the pending deadline, or None when idle"""
        if self.pending is None:
            return None
        return max(0.0, self.pending.deadline - now)

    def take(self) -> Optional[RawEvent]:
        """Clear the slot and return its event"""
        pending, self.pending = self.pending, None
        if pending is None:
            return None

        self.stats['events_coalesced'] += 1
        logger.debug(f"Coalesced {pending.count} event(s) into {pending.event}")
        return pending.event

    async def run(self, events: asyncio.Queue, errors: asyncio.Queue,
                  mailbox: asyncio.Queue):
        """
        Multiplex raw events, adapter errors and the quiet-period timer

        Never returns normally.

        Args:
            events: Stream of RawEvent objects
            errors: Stream of adapter errors
            mailbox: Destination for coalesced events

        Raises:
            AdapterError: As soon as an error arrives on the error stream
        """
        loop = asyncio.get_running_loop()
        event_get = None
        error_get = None

        try:
            while True:
                if event_get is None:
                    event_get = asyncio.ensure_future(events.get())
                if error_get is None:
                    error_get = asyncio.ensure_future(errors.get())

                done, _ = await asyncio.wait(
                    {event_get, error_get},
                    timeout=self.timeout(loop.time()),
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if error_get in done:
                    error = error_get.result()
                    error_get = None
                    if isinstance(error, AdapterError):
                        raise error
                    raise AdapterError(f"Failed to watch the path: {error}")

                if event_get in done:
                    event = event_get.result()
                    event_get = None
                    self.offer(event, loop.time())
                    continue

                # Quiet period elapsed
                await mailbox.put(self.take())

        finally:
            for getter in (event_get, error_get):
                if getter is not None:
                    getter.cancel()

    def get_stats(self) -> Dict[str, Any]:
        """Get debouncer statistics"""
        return {
            **self.stats,
            'pending': self.pending is not None,
            'quiet_period': self.quiet_period,
        }
