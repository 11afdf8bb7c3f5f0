"""Process-wide fan-out of case events to live observers.

Every observer gets its own bounded queue. ``publish`` never waits on an
observer: an event that does not fit in a queue drops that observer.
There is no replay, an observer only sees events published after it
subscribed.
"""
import json
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional

from courtroom import config

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    case_created = "case_created"
    upload = "upload"
    argument = "argument"
    verdict = "verdict"
    surrender = "surrender"


@dataclass
class Event:
    type: EventType
    case_id: int
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": EventType(self.type).value, "case_id": self.case_id, **self.data}

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"


class Subscription:
    def __init__(self, broadcaster: "Broadcaster", maxsize: int):
        self.id = uuid.uuid4().hex
        self._broadcaster = broadcaster
        self._queue: "queue.Queue[Event]" = queue.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, event: Event) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            return False

    def next_event(self, timeout: Optional[float] = None) -> Optional[Event]:
        """Wait up to ``timeout`` seconds for the next event, ``None`` if there is none."""
        if self.closed and self._queue.empty():
            return None
        try:
            if timeout == 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> Iterator[Event]:
        while True:
            event = self.next_event(timeout=0)
            if event is None:
                return
            yield event

    def close(self) -> bool:
        return self._broadcaster.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class Broadcaster:
    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or config.SUBSCRIBER_QUEUE_SIZE
        self._subscribers: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self.queue_size)
        with self._lock:
            self._subscribers[sub.id] = sub
            count = len(self._subscribers)
        logger.info("observer %s subscribed (%d connected)", sub.id, count)
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """Remove ``sub``; returns False if it was already gone."""
        with self._lock:
            removed = self._subscribers.pop(sub.id, None) is not None
            sub.closed = True
        if removed:
            logger.info("observer %s unsubscribed", sub.id)
        return removed

    def publish(self, event: Event) -> int:
        with self._lock:
            targets = list(self._subscribers.values())

        delivered = 0
        for sub in targets:
            if sub.closed:
                continue
            if sub.offer(event):
                delivered += 1
            else:
                logger.warning("observer %s is not keeping up, dropping it", sub.id)
                self.unsubscribe(sub)
        logger.debug("%s event for case %s delivered to %d observers", event.type, event.case_id, delivered)
        return delivered


broadcaster = Broadcaster()
