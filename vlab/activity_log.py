from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional, Tuple


INFO = "info"
WARNING = "warning"


@dataclass(frozen=True)
class ActivityEvent:
    kind: str
    message: str
    level: str = INFO
    data: Dict[str, Any] = field(default_factory=dict)


class ActivityLog:
    """Append-only record of lab events.

    Entries carry no timestamps; order is the only clock. Consumers usually
    render the last few lines only, so growth is unbounded unless
    ``max_events`` is set.
    """

    def __init__(self, max_events: Optional[int] = None):
        self.max_events = max_events
        self._events: List[ActivityEvent] = []

    def add(self, kind: str, message: str, level: str = INFO, **data: Any) -> ActivityEvent:
        ev = ActivityEvent(kind=str(kind), message=str(message), level=level, data=dict(data))
        self._events.append(ev)
        if self.max_events is not None and len(self._events) > self.max_events:
            # keep the newest events; zero or less keeps none
            keep = max(self.max_events, 0)
            self._events = self._events[len(self._events) - keep :]
        return ev

    def info(self, kind: str, message: str, **data: Any) -> ActivityEvent:
        return self.add(kind, message, INFO, **data)

    def warning(self, kind: str, message: str, **data: Any) -> ActivityEvent:
        return self.add(kind, message, WARNING, **data)

    @property
    def events(self) -> Tuple[ActivityEvent, ...]:
        return tuple(self._events)

    def lines(self) -> Tuple[str, ...]:
        return tuple(e.message for e in self._events)

    def tail(self, n: int) -> Tuple[str, ...]:
        if n <= 0:
            return ()
        return tuple(e.message for e in self._events[-n:])

    def warnings(self) -> Tuple[str, ...]:
        return tuple(e.message for e in self._events if e.level == WARNING)

    def __len__(self) -> int:
        return len(self._events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": "vlab-activity-log/v1",
            "eventCount": len(self._events),
            "events": [asdict(e) for e in self._events],
        }
