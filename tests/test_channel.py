"""
Tests for the snapshot channel.
"""

import threading

import pytest

from force_layout import CoordinateSnapshot, InvalidConfigError, SnapshotChannel


def snap(iteration, final=False):
    return CoordinateSnapshot(points=(), iteration=iteration, final=final)


class TestOffer:
    """Non-blocking periodic handoff."""

    def test_offer_and_get(self):
        channel = SnapshotChannel()
        assert channel.offer(snap(1))
        assert channel.get(timeout=0).iteration == 1

    def test_full_channel_discards_oldest(self):
        channel = SnapshotChannel(capacity=2)
        for i in range(1, 5):
            channel.offer(snap(i))
        assert len(channel) == 2
        assert channel.discarded == 2
        assert channel.get(timeout=0).iteration == 3
        assert channel.get(timeout=0).iteration == 4

    def test_offer_after_close(self):
        channel = SnapshotChannel()
        channel.close()
        assert channel.offer(snap(1)) is False
        assert len(channel) == 0

    def test_invalid_capacity(self):
        with pytest.raises(InvalidConfigError):
            SnapshotChannel(capacity=0)


class TestPut:
    """Blocking terminal handoff."""

    def test_put_times_out_when_full(self):
        channel = SnapshotChannel(capacity=1)
        channel.offer(snap(1))
        assert channel.put(snap(2, final=True), timeout=0.01) is False
        assert channel.get(timeout=0).iteration == 1

    def test_put_waits_for_consumer(self):
        channel = SnapshotChannel(capacity=1)
        channel.offer(snap(1))
        done = threading.Event()

        def producer():
            channel.put(snap(2, final=True))
            done.set()

        thread = threading.Thread(target=producer)
        thread.start()
        assert not done.wait(0.05)
        assert channel.get(timeout=1).iteration == 1
        assert done.wait(1)
        thread.join(1)
        assert channel.get(timeout=1).final

    def test_put_released_by_close(self):
        channel = SnapshotChannel(capacity=1)
        channel.offer(snap(1))
        result = []
        thread = threading.Thread(target=lambda: result.append(channel.put(snap(2, final=True))))
        thread.start()
        channel.close()
        thread.join(1)
        assert result == [False]

    def test_publish_routes_by_final_flag(self):
        channel = SnapshotChannel(capacity=1)
        channel.publish(snap(1))
        channel.publish(snap(2))
        assert channel.discarded == 1
        assert channel.get(timeout=0).iteration == 2
        assert channel.publish(snap(3, final=True)) is True
        assert channel.get(timeout=0).final


class TestIteration:
    """Consumer side."""

    def test_iteration_drains_then_stops(self):
        channel = SnapshotChannel(capacity=3)
        channel.offer(snap(1))
        channel.offer(snap(2))
        channel.close()
        assert [s.iteration for s in channel] == [1, 2]
        assert channel.closed

    def test_get_returns_none_when_closed_and_empty(self):
        channel = SnapshotChannel()
        channel.close()
        assert channel.get() is None

    def test_consumer_thread(self):
        channel = SnapshotChannel(capacity=1)
        received = []
        consumer = threading.Thread(target=lambda: received.extend(channel))
        consumer.start()
        channel.put(snap(1))
        channel.put(snap(2, final=True))
        channel.close()
        consumer.join(2)
        assert [s.iteration for s in received] == [1, 2]
