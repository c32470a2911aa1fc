"""Bounded, thread-safe window of recent chat lines."""

from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque, Tuple

from shared.chat.lines import ChatLine

DEFAULT_CAPACITY = 100


class ChatWindow:
    """
    Ring buffer of the most recent chat lines.

    - One producer (the chat worker) appends; many request threads read.
    - Every operation runs under a single lock, so readers never see an
      append whose eviction has not happened yet.
    - Callers only ever receive tuples; the deque is never handed out.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = int(capacity)
        self._lock = Lock()
        self._lines: Deque[ChatLine] = deque(maxlen=self._capacity)
        self._next_index = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, line: ChatLine) -> None:
        with self._lock:
            self._lines.append(line)
            self._next_index = max(self._next_index, line.sequence_index + 1)

    def record(self, username: str, content: str) -> ChatLine:
        """Append a line stamped with the next receipt index."""
        with self._lock:
            line = ChatLine(
                username=username,
                content=content,
                sequence_index=self._next_index,
            )
            self._next_index += 1
            self._lines.append(line)
            return line

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> Tuple[ChatLine, ...]:
        with self._lock:
            return tuple(self._lines)

    def last_n(self, n: int) -> Tuple[ChatLine, ...]:
        if n <= 0:
            return tuple()
        with self._lock:
            start = max(0, len(self._lines) - n)
            return tuple(self._lines)[start:]


__all__ = ["ChatWindow", "DEFAULT_CAPACITY"]
