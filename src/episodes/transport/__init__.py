"""Message channels. ZmqChannel lives in transport.zmq_channel (needs pyzmq)."""

from .base import Channel, InProcessChannel

__all__ = ['Channel', 'InProcessChannel']
