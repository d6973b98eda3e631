from __future__ import annotations

import itertools
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict


@dataclass(frozen=True)
class Event:
    id: int
    timestamp: float
    source: str
    type: str
    payload: dict[str, Any]


Subscriber = Callable[[Event], None]


class Bus:
    """
    Progress bus for a single run:
      - ordering via a per-bus monotonic counter
      - in-memory history (nothing is persisted)
      - fan-out to subscribers
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._subs: DefaultDict[str, list[Subscriber]] = defaultdict(list)
        self.history: list[Event] = []

    def subscribe(self, event_type: str, cb: Subscriber) -> None:
        """
        Subscribe to an event type.
          - exact match: "chown.succeeded"
          - wildcard: "*"
        """
        self._subs[event_type].append(cb)

    def publish(self, *, source: str, type: str, payload: dict[str, Any]) -> Event:
        ev = Event(id=next(self._ids), timestamp=time.time(), source=source, type=type, payload=payload)
        self.history.append(ev)

        # Order: wildcard first, then exact. Both receive the same Event.
        for cb in list(self._subs.get("*", [])):
            cb(ev)
        for cb in list(self._subs.get(type, [])):
            cb(ev)
        return ev
