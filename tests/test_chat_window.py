"""
Unit tests for the bounded chat window.

Tests:
- Capacity and eviction order
- last_n slicing and empty-window behaviour
- Snapshots are detached from later writes
- Concurrent appends never exceed capacity
- Readers never observe a torn window while writers evict
"""

import threading

import pytest

from shared.chat.lines import ChatLine
from shared.runtime.chat_window import DEFAULT_CAPACITY, ChatWindow


class TestCapacity:
    def test_default_capacity(self):
        assert ChatWindow().capacity == DEFAULT_CAPACITY == 100

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            ChatWindow(capacity=capacity)

    def test_oldest_lines_are_evicted(self):
        """Appending C + k lines keeps exactly the last C, in order."""
        window = ChatWindow(capacity=5)
        for i in range(8):
            window.record(f"user{i}", f"message {i}")

        lines = window.snapshot()
        assert len(lines) == 5
        assert [line.content for line in lines] == [f"message {i}" for i in range(3, 8)]

    def test_record_assigns_increasing_indexes(self):
        window = ChatWindow(capacity=3)
        first = window.record("alice", "hi")
        second = window.record("bob", "hey")
        assert second.sequence_index == first.sequence_index + 1

    def test_append_advances_next_index(self):
        window = ChatWindow()
        window.append(ChatLine("alice", "hi", sequence_index=10))
        assert window.record("bob", "yo").sequence_index == 11


class TestReads:
    def test_empty_window(self):
        window = ChatWindow()
        assert len(window) == 0
        assert window.snapshot() == ()
        assert window.last_n(20) == ()

    def test_last_n_returns_newest_in_order(self):
        window = ChatWindow()
        for i in range(10):
            window.record("alice", str(i))

        assert [line.content for line in window.last_n(3)] == ["7", "8", "9"]

    def test_last_n_larger_than_window(self):
        window = ChatWindow()
        window.record("alice", "only")
        assert len(window.last_n(20)) == 1

    @pytest.mark.parametrize("n", [0, -5])
    def test_last_n_non_positive(self, n):
        window = ChatWindow()
        window.record("alice", "hi")
        assert window.last_n(n) == ()

    def test_snapshot_is_detached(self):
        window = ChatWindow()
        window.record("alice", "hi")
        snapshot = window.snapshot()
        window.record("bob", "later")
        assert len(snapshot) == 1

    def test_clear(self):
        window = ChatWindow()
        window.record("alice", "hi")
        window.clear()
        assert len(window) == 0


class TestConcurrency:
    def test_parallel_writers_respect_capacity(self):
        window = ChatWindow(capacity=50)

        def writer(name):
            for i in range(200):
                window.record(name, f"{name} {i}")

        threads = [threading.Thread(target=writer, args=(f"user{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = window.snapshot()
        assert len(lines) == 50
        indexes = [line.sequence_index for line in lines]
        assert indexes == sorted(indexes)
        assert indexes[-1] == 799

    def test_readers_see_consistent_window_during_eviction(self):
        window = ChatWindow(capacity=20)
        done = threading.Event()
        violations = []

        def writer():
            for i in range(2000):
                window.record("writer", f"line {i}")
            done.set()

        def reader(take):
            while not done.is_set():
                lines = take()
                indexes = [line.sequence_index for line in lines]
                if len(lines) > 20 or any(b != a + 1 for a, b in zip(indexes, indexes[1:])):
                    violations.append(indexes)

        readers = [
            threading.Thread(target=reader, args=(window.snapshot,)),
            threading.Thread(target=reader, args=(lambda: window.last_n(5),)),
            threading.Thread(target=reader, args=(lambda: window.last_n(50),)),
        ]
        for thread in readers:
            thread.start()
        writer()
        for thread in readers:
            thread.join()

        assert violations == []
        assert [line.sequence_index for line in window.snapshot()] == list(range(1980, 2000))
