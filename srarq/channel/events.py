"""
Discrete-event scheduling for the emulated network.

Events are kept in a min-heap ordered by time; ties are broken by insertion
order so that two packets scheduled for the same instant keep their order.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class Entity(Enum):
    """Protocol endpoints."""
    A = 0   # sender
    B = 1   # receiver

    @property
    def peer(self) -> 'Entity':
        return Entity.B if self is Entity.A else Entity.A


class EventType(Enum):
    """Types of simulation events."""
    FROM_LAYER5 = 0       # Application hands a message to A
    FROM_LAYER3 = 1       # Packet arrives at an entity
    TIMER_INTERRUPT = 2   # Retransmission timer expiry


@dataclass(order=True)
class SimEvent:
    """Simulation event."""
    time: float
    order: int
    event_type: EventType = field(compare=False)
    entity: Entity = field(compare=False)
    data: Any = field(compare=False, default=None)


class EventScheduler:
    """
    Simulated clock plus pending-event queue.

    Attributes:
        now: Current simulated time
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[SimEvent] = []
        self._counter = itertools.count()

    def schedule_at(
        self,
        time: float,
        event_type: EventType,
        entity: Entity,
        data: Any = None
    ) -> SimEvent:
        """Schedule an event at an absolute time."""
        if time < self.now:
            raise ValueError(f"Cannot schedule event in the past ({time} < {self.now})")
        event = SimEvent(time, next(self._counter), event_type, entity, data)
        heapq.heappush(self._queue, event)
        return event

    def schedule(
        self,
        delay: float,
        event_type: EventType,
        entity: Entity,
        data: Any = None
    ) -> SimEvent:
        """Schedule an event delay time units from now."""
        return self.schedule_at(self.now + delay, event_type, entity, data)

    def pop(self) -> Optional[SimEvent]:
        """Remove the next event and advance the clock to it."""
        if not self._queue:
            return None
        event = heapq.heappop(self._queue)
        self.now = event.time
        return event

    def peek_time(self) -> Optional[float]:
        """Time of the next event, if any."""
        return self._queue[0].time if self._queue else None

    def __len__(self) -> int:
        return len(self._queue)

    def clear(self):
        """Drop all pending events and rewind the clock."""
        self._queue.clear()
        self.now = 0.0
