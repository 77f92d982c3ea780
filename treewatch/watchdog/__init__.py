# treewatch/watchdog/__init__.py

"""
treewatch watchdog module
Subtree watching with debounced, pattern-based dispatch
"""
from .monitor import Watcher, Dispatcher, new_watcher
from .events import RawEvent, EventType, is_write, is_remove
from .debounce import Debouncer, PendingEvent, QUIET_PERIOD
from .patterns import PatternRegistry, PatternRule, PathHandler
from .handlers import EventHandler, convert_event
from .watcher import NotificationAdapter, walk_subtree, register_subtree
from .exceptions import WatcherError, CoverageError, AdapterError

__all__ = [
    'Watcher',
    'Dispatcher',
    'new_watcher',
    'RawEvent',
    'EventType',
    'is_write',
    'is_remove',
    'Debouncer',
    'PendingEvent',
    'QUIET_PERIOD',
    'PatternRegistry',
    'PatternRule',
    'PathHandler',
    'EventHandler',
    'convert_event',
    'NotificationAdapter',
    'walk_subtree',
    'register_subtree',
    'WatcherError',
    'CoverageError',
    'AdapterError',
]
