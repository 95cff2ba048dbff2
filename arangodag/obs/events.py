"""In-memory log of the actions executed through :class:`~arangodag.api.DAGApp`."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, Optional, Tuple

from arangodag.graph.ids import utc_now

LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True)
class Event:
    """One executed (or failed) action."""

    ts: str
    level: str
    msg: str
    action: str | None = None
    target_keys: Tuple[str, ...] = ()
    extras: dict | None = None

    def to_payload(self) -> dict:
        return {
            "ts": self.ts,
            "level": self.level,
            "msg": self.msg,
            "action": self.action,
            "target_keys": list(self.target_keys),
            "extras": self.extras,
        }


@dataclass
class EventBus:
    """Append-only event log keeping the most recent ``capacity`` events."""

    capacity: Optional[int] = 1000
    _events: Deque[Event] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 1:
            raise ValueError("capacity must be positive or None")
        self._events = deque(maxlen=self.capacity)

    def emit(
        self,
        *,
        level: str,
        msg: str,
        action: str | None = None,
        target_keys: Iterable[str] | None = None,
        extras: dict | None = None,
    ) -> Event:
        """Create and store a new :class:`Event`."""

        if level not in LEVELS:
            raise ValueError(f"Unknown event level: {level}")
        event = Event(
            ts=utc_now(),
            level=level,
            msg=msg,
            action=action,
            target_keys=tuple(target_keys or ()),
            extras=extras,
        )
        self._events.append(event)
        return event

    def history(self, *, action: str | None = None, level: str | None = None) -> Tuple[Event, ...]:
        """Return the retained events, oldest first, optionally filtered."""

        return tuple(
            event
            for event in self._events
            if (action is None or event.action == action) and (level is None or event.level == level)
        )

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
