# treewatch/watchdog/patterns.py

"""
Filename pattern registry for dispatching change events
"""
import re
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Protocol, Union

logger = logging.getLogger(__name__)


class PathHandler(Protocol):
    """Capability invoked with the absolute path of a changed file"""

    def __call__(self, path: str) -> None:
        ...


@dataclass
class PatternRule:
    """Pattern bound to the handler it dispatches to"""
    pattern: re.Pattern
    handler: PathHandler

    def matches(self, filename: str) -> bool:
        """
        Check if a base filename matches the rule

        Args:
            filename: Base filename (no directory part)

        Returns:
            True if the pattern is found anywhere in the filename
        """
        return self.pattern.search(filename) is not None


def compile_pattern(pattern: Union[str, re.Pattern]) -> re.Pattern:
    """
    Compile a pattern string, passing compiled patterns through

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


class PatternRegistry:
    """
    Thread-safe mapping from filename pattern to handler

    Rules are kept in registration order. Registering an equal pattern
    again replaces its handler but keeps its position.
    """

    def __init__(self):
        self._rules: Dict[re.Pattern, PatternRule] = {}
        self._lock = threading.Lock()

    def add(self, pattern: Union[str, re.Pattern], handler: PathHandler) -> PatternRule:
        """
        Register a handler for a pattern

        Args:
            pattern: Regular expression matched against base filenames
            handler: Callable receiving the absolute path of the changed file

        Returns:
            The stored rule
        """
        compiled = compile_pattern(pattern)
        rule = PatternRule(pattern=compiled, handler=handler)

        with self._lock:
            replaced = compiled in self._rules
            self._rules[compiled] = rule

        if replaced:
            logger.debug(f"Replaced handler for pattern: {compiled.pattern}")
        else:
            logger.debug(f"Added pattern: {compiled.pattern}")
        return rule

    def match(self, filename: str) -> List[PathHandler]:
        """
        Get handlers whose pattern matches a filename

        Args:
            filename: Base filename

        Returns:
            Matching handlers in registration order
        """
        with self._lock:
            return [rule.handler for rule in self._rules.values() if rule.matches(filename)]

    def patterns(self) -> List[str]:
        """Get registered pattern strings in order"""
        with self._lock:
            return [compiled.pattern for compiled in self._rules]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)
