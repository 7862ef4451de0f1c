"""
Notices published by the scanner.

Subscribers receive ``Notice`` objects (informational, warning, error and
per-rule progress) while a run is going, and exactly one ``Completion`` per
run once it has ended.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union


class NoticeKind(str, Enum):
    """Kinds of notice."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    PROGRESS = "progress"


@dataclass(frozen=True)
class Notice:
    """
    A status message.

    Attributes:
        kind: Notice category.
        message: Text for the user.
        rule_id: Rule the progress notice refers to (PROGRESS only).
        result: Rule result such as "pass" or "fail" (PROGRESS only).
    """

    kind: NoticeKind
    message: str
    rule_id: Optional[str] = None
    result: Optional[str] = None


@dataclass(frozen=True)
class Completion:
    """Terminal event of a run; ``cancelled`` is the run's disposition."""

    cancelled: bool


Event = Union[Notice, Completion]
Subscriber = Callable[[Event], None]


class NoticeBus:
    """Synchronous fan-out of scanner events to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that unregisters it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: Event) -> None:
        for subscriber in list(self._subscribers):
            subscriber(event)

    def info(self, message: str) -> None:
        self.publish(Notice(NoticeKind.INFO, message))

    def warning(self, message: str) -> None:
        self.publish(Notice(NoticeKind.WARNING, message))

    def error(self, message: str) -> None:
        self.publish(Notice(NoticeKind.ERROR, message))

    def progress(self, rule_id: str, result: str) -> None:
        self.publish(Notice(NoticeKind.PROGRESS, f"{rule_id}: {result}", rule_id, result))


class NoticeRecorder:
    """
    Subscriber that keeps every event it receives.

    Handy for callers that inspect the outcome of a run after the fact.
    """

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def notices(self, kind: Optional[NoticeKind] = None) -> list[Notice]:
        return [
            event
            for event in self.events
            if isinstance(event, Notice) and (kind is None or event.kind == kind)
        ]

    def completions(self) -> list[Completion]:
        return [event for event in self.events if isinstance(event, Completion)]
