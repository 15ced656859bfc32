"""
Bounded handoff of snapshots from the simulation thread to the sink thread.

Periodic snapshots are offered without blocking: when the channel is full the
oldest pending periodic snapshot is discarded, so a slow sink only ever sees
fresher positions and never slows the simulation down. The terminal snapshot
is put with blocking semantics and is never discarded.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterator, Optional

from .types import CoordinateSnapshot
from .validation import validate_capacity


class SnapshotChannel:
    """
    Single-producer, single-consumer snapshot queue.

    The consumer iterates the channel; iteration ends once the channel is
    closed and drained.

    Example:
        channel = SnapshotChannel(capacity=1)
        channel.offer(snapshot)        # simulation thread
        channel.close()
        for snapshot in channel:       # sink thread
            sink(snapshot)
    """

    def __init__(self, capacity: int = 1) -> None:
        self._capacity = validate_capacity(capacity)
        self._items: deque[CoordinateSnapshot] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self.discarded: int = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def offer(self, snapshot: CoordinateSnapshot) -> bool:
        """
        Enqueue without blocking, discarding the oldest pending snapshot if full.

        Returns:
            False if the channel is closed, True otherwise.
        """
        with self._cond:
            if self._closed:
                return False
            if len(self._items) >= self._capacity:
                self._items.popleft()
                self.discarded += 1
            self._items.append(snapshot)
            self._cond.notify_all()
            return True

    def put(self, snapshot: CoordinateSnapshot, timeout: Optional[float] = None) -> bool:
        """
        Enqueue, waiting for free space.

        Returns:
            False if the channel closed (or timeout expired) before space freed up.
        """
        with self._cond:
            has_space = self._cond.wait_for(
                lambda: self._closed or len(self._items) < self._capacity, timeout
            )
            if self._closed or not has_space:
                return False
            self._items.append(snapshot)
            self._cond.notify_all()
            return True

    def publish(self, snapshot: CoordinateSnapshot) -> bool:
        """Route terminal snapshots to put() and periodic ones to offer()."""
        if snapshot.final:
            return self.put(snapshot)
        return self.offer(snapshot)

    def get(self, timeout: Optional[float] = None) -> Optional[CoordinateSnapshot]:
        """
        Dequeue the next snapshot.

        Returns:
            The snapshot, or None once the channel is closed and drained
            (or the timeout expired).
        """
        with self._cond:
            self._cond.wait_for(lambda: self._closed or self._items, timeout)
            if not self._items:
                return None
            snapshot = self._items.popleft()
            self._cond.notify_all()
            return snapshot

    def close(self) -> None:
        """Stop accepting snapshots. Pending ones can still be read."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[CoordinateSnapshot]:
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot


__all__ = ["SnapshotChannel"]
