from enum import Enum
from dataclasses import dataclass
from datetime import datetime


class EventType(Enum):
    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    OTHER = "other"


@dataclass
class RawEvent:
    path: str
    event_type: EventType
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    def __str__(self):
        return f"{self.event_type.value}: {self.path}"


def is_write(event: RawEvent) -> bool:
    # editors may only send a create instead of a modify
    return event.event_type in (EventType.WRITE, EventType.CREATE)


def is_remove(event: RawEvent) -> bool:
    return event.event_type is EventType.REMOVE


def is_of_interest(event: RawEvent) -> bool:
    return is_write(event) or is_remove(event)
