"""
treewatch - react to file changes under a directory tree
"""
from .watchdog import Watcher, new_watcher, WatcherError, CoverageError, AdapterError

__version__ = "1.0.0"

__all__ = [
    'Watcher',
    'new_watcher',
    'WatcherError',
    'CoverageError',
    'AdapterError',
]
