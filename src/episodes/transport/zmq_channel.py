"""ZeroMQ PUSH/PULL channel.

The listener binds a PULL socket; registries connect PUSH sockets to it.
PUSH/PULL keeps per-connection ordering and never acknowledges, which is
exactly the channel contract. Requires the ``zmq`` extra (pyzmq).
"""

import logging
from typing import Optional

import zmq

from .base import Channel

logger = logging.getLogger(__name__)


class ZmqChannel(Channel):
    """Protocol lines over a ZMQ PUSH (producer) or PULL (listener) socket."""

    PRODUCER = "producer"
    LISTENER = "listener"

    def __init__(self, endpoint: str, role: str = PRODUCER, linger_ms: int = 1000):
        """
        Args:
            endpoint: ZMQ endpoint, e.g. "tcp://127.0.0.1:5599"
            role: PRODUCER connects a PUSH socket, LISTENER binds a PULL socket
            linger_ms: How long close() may wait to flush unsent lines
        """
        if role not in (self.PRODUCER, self.LISTENER):
            raise ValueError(f"Unknown role {role!r}")

        self.endpoint = endpoint
        self.role = role
        self._ctx = zmq.Context.instance()
        self._closed = False

        if role == self.PRODUCER:
            self._socket = self._ctx.socket(zmq.PUSH)
            self._socket.setsockopt(zmq.LINGER, linger_ms)
            self._socket.connect(endpoint)
        else:
            self._socket = self._ctx.socket(zmq.PULL)
            self._socket.bind(endpoint)

        logger.info(f"ZMQ {role} channel on {endpoint}")

    def send(self, line: str):
        if self.role != self.PRODUCER:
            raise RuntimeError("Listener channel cannot send")
        try:
            self._socket.send_string(line, flags=zmq.NOBLOCK)
        except zmq.Again:
            logger.warning(f"ZMQ send queue full, dropped: {line}")

    def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        if self.role != self.LISTENER:
            raise RuntimeError("Producer channel cannot receive")
        timeout_ms = int(timeout * 1000) if timeout else 0
        if not self._socket.poll(timeout_ms, zmq.POLLIN):
            return None
        return self._socket.recv_string()

    def close(self):
        if not self._closed:
            self._socket.close()
            self._closed = True
            logger.info(f"ZMQ {self.role} channel closed")

    @property
    def closed(self) -> bool:
        return self._closed
