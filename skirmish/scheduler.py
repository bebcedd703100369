"""
Deterministic ordering of the events detected in a sub-step.

Events are sorted by time, then by a fixed key (event kind, participants),
and consumed as batches of simultaneous events. Each batch is filtered at
the moment it is popped, so nothing is resolved against an entity that an
earlier batch in the same sub-step destroyed.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from .entities import EntityId
from .events import SimulationEvent


class EventScheduler:
    """Stack of simultaneous event batches, earliest first."""

    def __init__(self, events: Iterable[SimulationEvent]) -> None:
        # Reverse order so the earliest events sit on top of the stack
        self._pending: list[SimulationEvent] = sorted(
            set(events), key=lambda ev: ev.sort_key, reverse=True
        )

    def __len__(self) -> int:
        return len(self._pending)

    def pop_batch(self) -> list[SimulationEvent]:
        """Remove and return every event sharing the earliest remaining time."""
        if not self._pending:
            return []
        batch = [self._pending.pop()]
        while self._pending and self._pending[-1].time == batch[0].time:
            batch.append(self._pending.pop())
        return batch

    def batches(self, is_alive: Callable[[EntityId], bool]) -> Iterator[list[SimulationEvent]]:
        """
        Yield simultaneous batches with dead participants filtered out.

        The liveness check runs lazily, after the caller has resolved the
        previous batch, so it always sees the current state of the world.

        Args:
            is_alive: Predicate telling whether an entity is still alive.

        Yields:
            Non-empty batches in ascending time order.
        """
        while self._pending:
            batch = [
                ev for ev in self.pop_batch()
                if is_alive(ev.id1) and is_alive(ev.id2)
            ]
            if batch:
                yield batch
