# treewatch/watchdog/exceptions.py

"""
Errors raised by the watcher
"""


class WatcherError(RuntimeError):
    """Base class for watcher failures"""


class CoverageError(WatcherError):
    """A directory under the watch root could not be registered"""

    def __init__(self, path: str, cause: Exception = None):
        self.path = path
        self.cause = cause
        message = f"Failed to watch directory {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class AdapterError(WatcherError):
    """The notification adapter failed after startup"""
