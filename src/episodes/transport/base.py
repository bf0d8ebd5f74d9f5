"""
One-directional message channels.

A channel carries protocol lines from one registry to one or more
listeners. The contract is the same for every realization:

    - lines arrive in the order they were sent
    - each send is delivered at most once, never re-delivered
    - send() never waits for the receiver and nothing is acknowledged
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Iterator, Optional

logger = logging.getLogger(__name__)


class Channel(ABC):
    """Ordered, fire-and-forget line channel."""

    @abstractmethod
    def send(self, line: str):
        """Hand a line to the transport and return immediately."""

    @abstractmethod
    def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Next line, or None if nothing arrives within timeout.

        A timeout of None returns immediately when the channel is empty.
        """

    def close(self):
        """Release transport resources."""

    @property
    def closed(self) -> bool:
        return False

    def drain(self) -> Iterator[str]:
        """Yield every line currently waiting, in order."""
        while True:
            line = self.receive()
            if line is None:
                return
            yield line


class InProcessChannel(Channel):
    """
    Channel between two contexts in the same process.

    Backed by a FIFO deque; receive() can block on a condition variable so a
    listener thread can wait for the producer.
    """

    def __init__(self, maxlen: Optional[int] = None):
        """
        Args:
            maxlen: Drop the oldest lines beyond this many (None: unbounded)
        """
        self._queue: Deque[str] = deque(maxlen=maxlen)
        self._cond = threading.Condition()
        self._closed = False
        self.sent_count = 0

    def send(self, line: str):
        with self._cond:
            if self._closed:
                logger.debug(f"Dropping line on closed channel: {line}")
                return
            self._queue.append(line)
            self.sent_count += 1
            self._cond.notify()

    def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        with self._cond:
            if not self._queue and timeout and not self._closed:
                self._cond.wait(timeout)
            if self._queue:
                return self._queue.popleft()
            return None

    def close(self):
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._queue)
